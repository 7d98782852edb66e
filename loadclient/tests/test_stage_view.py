from loadclient.policy.context import PolicyContext
from loadclient.policy.stage_view import StageStatus, StageViewSelector


def _context(*members: str) -> PolicyContext:
    ctx = PolicyContext(self_id="me", stage_view=True)
    ctx.roster.replace(members)
    return ctx


def test_initially_unselected():
    selector = StageViewSelector()
    assert selector.status == StageStatus.UNSELECTED
    assert selector.on_stage is None
    assert selector.is_selected is False


def test_eligible_primary_is_selected():
    ctx = _context("p1", "p2")

    assert ctx.stage.select("p1", ["p2"], ctx.is_stage_eligible) is True
    assert ctx.stage.status == StageStatus.SELECTED
    assert ctx.stage.on_stage == "p1"


def test_falls_back_to_first_eligible_previous_speaker():
    ctx = _context("p2", "p3")

    changed = ctx.stage.select("p1", ["p2", "p3"], ctx.is_stage_eligible)

    assert changed is True
    assert ctx.stage.on_stage == "p2"


def test_repeated_event_reports_no_change():
    ctx = _context("p2", "p3")
    ctx.stage.select("p1", ["p2", "p3"], ctx.is_stage_eligible)

    assert ctx.stage.select("p1", ["p2", "p3"], ctx.is_stage_eligible) is False
    assert ctx.stage.on_stage == "p2"


def test_never_selects_self():
    ctx = _context("p2")

    assert ctx.stage.select("me", ["me"], ctx.is_stage_eligible) is False
    assert ctx.stage.status == StageStatus.UNSELECTED

    assert ctx.stage.select("me", ["me", "p2"], ctx.is_stage_eligible) is True
    assert ctx.stage.on_stage == "p2"


def test_unknown_ids_keep_current_selection():
    ctx = _context("p1")
    ctx.stage.select("p1", [], ctx.is_stage_eligible)

    assert ctx.stage.select("ghost", ["phantom"], ctx.is_stage_eligible) is False
    assert ctx.stage.on_stage == "p1"


def test_leave_does_not_clear_selection_until_next_event():
    ctx = _context("p1", "p2")
    ctx.stage.select("p1", [], ctx.is_stage_eligible)

    ctx.roster.remove("p1")
    assert ctx.stage.on_stage == "p1"

    assert ctx.stage.select("p1", ["p2"], ctx.is_stage_eligible) is True
    assert ctx.stage.on_stage == "p2"
