"""
test_timer.py - QuestionTimer / format_time
"""

import pytest

from src.core.timer import QuestionTimer, format_time


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.mark.parametrize(
    "seconds,formatted",
    [(0, "0:00"), (5, "0:05"), (65, "1:05"), (180, "3:00"), (-3, "0:00"), (59.9, "0:59")],
)
def test_format_time(seconds, formatted):
    assert format_time(seconds) == formatted


class TestQuestionTimer:
    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            QuestionTimer(0)

    def test_not_started(self, clock):
        timer = QuestionTimer(180, clock=clock)

        assert timer.time_left == 180
        assert timer.is_expired is False
        assert timer.progress == 0

    def test_counts_down_whole_seconds(self, clock):
        timer = QuestionTimer(180, clock=clock)
        timer.start()

        clock.advance(10.7)

        assert timer.time_left == 170
        assert timer.progress == pytest.approx(10 / 180 * 100)

    def test_expires_and_never_negative(self, clock):
        timer = QuestionTimer(60, clock=clock)
        timer.start()

        clock.advance(75)

        assert timer.time_left == 0
        assert timer.is_expired is True
        assert timer.progress == 100

    def test_pause_excludes_time(self, clock):
        timer = QuestionTimer(120, clock=clock)
        timer.start()
        clock.advance(20)

        timer.pause()
        clock.advance(100)
        assert timer.is_paused is True
        assert timer.time_left == 100

        timer.resume()
        clock.advance(30)
        assert timer.is_paused is False
        assert timer.time_left == 70

    def test_pause_twice_and_resume_without_pause(self, clock):
        timer = QuestionTimer(120, clock=clock)
        timer.resume()
        timer.start()
        timer.pause()
        clock.advance(10)
        timer.pause()
        clock.advance(10)
        timer.resume()

        assert timer.time_left == 120

    def test_start_at_past_instant(self, clock):
        clock.now = 1000.0
        timer = QuestionTimer(180, clock=clock)

        timer.start(at=900.0)

        assert timer.time_left == 80

    def test_restart_resets(self, clock):
        timer = QuestionTimer(30, clock=clock)
        timer.start()
        clock.advance(40)

        timer.start()

        assert timer.time_left == 30
        assert timer.is_expired is False

    @pytest.mark.parametrize(
        "elapsed,urgency",
        [(0, "normal"), (119, "normal"), (120, "warning"), (150, "critical"), (180, "critical")],
    )
    def test_urgency(self, clock, elapsed, urgency):
        timer = QuestionTimer(180, clock=clock)
        timer.start()
        clock.advance(elapsed)

        assert timer.urgency == urgency

    def test_to_dict(self, clock):
        timer = QuestionTimer(180, clock=clock)
        timer.start()
        clock.advance(45)

        assert timer.to_dict() == {
            "duration": 180,
            "time_left": 135,
            "formatted": "2:15",
            "progress": 25.0,
            "urgency": "normal",
            "is_expired": False,
            "is_paused": False,
        }
