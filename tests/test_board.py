import dataclasses
from datetime import date, datetime

from obtracker.board import banner_text, build_board, card_for
from obtracker.models import Alert, FeedingMethod, NewbornScreens, ScreenResult, feeding_icon
from obtracker.scheduler import due_set_across_patients


def test_mother_card_stats_and_badges(mother, now):
    m = dataclasses.replace(
        mother,
        csection=True,
        csection_date=date(2023, 12, 31),
        delivered=True,
        ebl=900,
        preeclamptic=True,
        gbs_positive=True,
    )
    card = card_for(m, now)
    assert card.stats == ["\U0001F3192", "POD1", "EBL900"]
    assert card.badges == ["MAG", "C/S", "DEL", "CBC", "GBS+"]
    assert not card.alert_active


def test_cbc_badge_cleared_when_done(mother, now):
    m = dataclasses.replace(mother, delivered=True, cbc_done=True)
    assert "CBC" not in card_for(m, now).badges


def test_baby_card(baby, now):
    b = dataclasses.replace(
        baby,
        born=datetime(2024, 1, 1, 2, 30),
        feeding=FeedingMethod.BREAST,
        nicu=True,
        phototherapy=True,
        screens=NewbornScreens(cardiac=ScreenResult.FAIL),
    )
    card = card_for(b, now)
    assert card.stats == ["5.5h", feeding_icon(FeedingMethod.BREAST)]
    assert card.badges == ["NICU", "24h", "PHOTO", "SCREEN"]


def test_active_alert_flagged(baby, now):
    b = dataclasses.replace(baby, alerts=(Alert(id="a", label="Feed", start=now),))
    card = card_for(b, now)
    assert card.alert_active
    assert card.badges[-1] == "ALERT"


def test_board_in_room_order_and_banner(mother, baby, now):
    m = dataclasses.replace(mother, room="3", alerts=(Alert(id="a", label="Mag", start=now, repeat_hours=2),))
    cards = build_board([baby, m], now)
    assert [c.room for c in cards] == ["3", "12B"]
    assert banner_text(due_set_across_patients([m, baby], now)) == "Rm 3: Mag"
    assert banner_text([]) == ""
