"""Tests for the session tracker."""

from sessionsync.sync.tracker import SessionTracker


def track(tracker, session_id, slug="fix-login-bug", project="my-app", date="2026-02-14"):
    return tracker.track(
        session_id=session_id,
        project_id="proj1",
        project_name=project,
        created_date=date,
        slug=slug,
    )


class TestSessionTracker:
    def test_track_computes_note_path(self):
        tracker = SessionTracker()
        tracked = track(tracker, "ses_1")

        assert tracked.note_path == (
            "10-Projects/my-app/sessions/2026-02/14-fix-login-bug/summary.md"
        )
        assert tracked.title_slug == "fix-login-bug"
        assert not tracked.seen_in_upstream
        assert "ses_1" in tracker
        assert tracker.get("ses_1") is tracked

    def test_colliding_slug_gets_id_suffix(self):
        tracker = SessionTracker()
        track(tracker, "ses_aaaaaa111")
        second = track(tracker, "ses_bbbbbb222")

        assert second.slug == "fix-login-bug-bbbbbb"
        assert second.title_slug == "fix-login-bug"
        assert second.note_path.endswith("/14-fix-login-bug-bbbbbb/summary.md")

    def test_same_slug_on_other_day_does_not_collide(self):
        tracker = SessionTracker()
        track(tracker, "ses_1")
        other = track(tracker, "ses_2", date="2026-02-15")
        assert other.slug == "fix-login-bug"

    def test_retracking_same_id_keeps_slug(self):
        tracker = SessionTracker()
        track(tracker, "ses_1")
        again = track(tracker, "ses_1")
        assert again.slug == "fix-login-bug"
        assert len(tracker) == 1

    def test_reslug_recomputes_path(self):
        tracker = SessionTracker(notes_root="Vault")
        tracked = track(tracker, "ses_1")
        tracker.reslug(tracked, "new-title", "new-title")

        assert tracked.slug == "new-title"
        assert tracked.note_path == "Vault/my-app/sessions/2026-02/14-new-title/summary.md"

    def test_iteration_tolerates_removal(self):
        tracker = SessionTracker()
        track(tracker, "ses_1", slug="a")
        track(tracker, "ses_2", slug="b")

        for tracked in tracker:
            tracker.remove(tracked.session_id)

        assert len(tracker) == 0

    def test_clear(self):
        tracker = SessionTracker()
        track(tracker, "ses_1")
        tracker.clear()
        assert tracker.get("ses_1") is None
