import pytest

from loadclient.policy.constraints import ReceiverConstraints, ReceiverConstraintsBuilder, default_max_height
from loadclient.policy.context import PolicyContext
from loadclient.policy.last_n import LastNTier
from loadclient.policy.settings import FrameHeights, PolicySettings


HEIGHTS = FrameHeights()


def _context(count: int, stage_view: bool = False) -> PolicyContext:
    ctx = PolicyContext(self_id="me", stage_view=stage_view)
    ctx.roster.replace(f"p{i}" for i in range(1, count))
    return ctx


def test_tile_view_height_tiers():
    assert [default_max_height(n, False, HEIGHTS) for n in range(1, 8)] == [720, 720, 360, 360, 180, 180, 180]


def test_tile_view_height_is_non_increasing():
    heights = [default_max_height(n, False, HEIGHTS) for n in range(1, 50)]
    assert heights == sorted(heights, reverse=True)


@pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 40])
def test_stage_view_height_is_constant(count):
    assert default_max_height(count, True, HEIGHTS) == 2160


def test_custom_height_levels():
    heights = FrameHeights(high=1080, medium=540, low=270, stage=1080, high_max_participants=3, medium_max_participants=9)
    assert default_max_height(3, False, heights) == 1080
    assert default_max_height(9, False, heights) == 540
    assert default_max_height(10, False, heights) == 270


def test_scenario_two_participants_tile_view():
    builder = ReceiverConstraintsBuilder(
        PolicySettings(last_n_tiers=(LastNTier(2, 10),)),
        video_source_lookup=lambda pid: None,
    )

    constraints = builder.build(_context(2))

    assert constraints == ReceiverConstraints(last_n=10, default_max_height=720, on_stage_source_ids=())


def test_scenario_capped_last_n_large_roster():
    builder = ReceiverConstraintsBuilder(
        PolicySettings(channel_last_n=3, last_n_tiers=(LastNTier(4, 20), LastNTier(None, 5))),
        video_source_lookup=lambda pid: None,
    )

    constraints = builder.build(_context(5))

    assert constraints.last_n == 3
    assert constraints.default_max_height == 180


def test_unchanged_values_are_not_republished():
    builder = ReceiverConstraintsBuilder(PolicySettings(), video_source_lookup=lambda pid: None)
    ctx = _context(3)
    ctx.last_published = builder.build(ctx)

    assert builder.build(ctx) is None
    assert builder.build(ctx, force=True) == ctx.last_published


def test_any_field_change_is_published():
    builder = ReceiverConstraintsBuilder(PolicySettings(), video_source_lookup=lambda pid: None)
    ctx = _context(2)
    ctx.last_published = builder.build(ctx)

    ctx.roster.add("p9")
    assert builder.build(ctx).default_max_height == 360


def test_build_does_not_record_last_published():
    builder = ReceiverConstraintsBuilder(PolicySettings(), video_source_lookup=lambda pid: None)
    ctx = _context(2)

    builder.build(ctx)

    assert ctx.last_published is None


def test_on_stage_source_requires_active_video():
    sources = {}
    builder = ReceiverConstraintsBuilder(PolicySettings(stage_view=True), video_source_lookup=sources.get)
    ctx = _context(3, stage_view=True)
    ctx.stage.select("p1", [], ctx.is_stage_eligible)

    assert builder.compute(ctx).on_stage_source_ids == ()

    sources["p1"] = "p1-video"
    assert builder.compute(ctx).on_stage_source_ids == ("p1-video",)


def test_on_stage_source_dropped_when_member_left():
    builder = ReceiverConstraintsBuilder(PolicySettings(stage_view=True), video_source_lookup=lambda pid: f"{pid}-video")
    ctx = _context(3, stage_view=True)
    ctx.stage.select("p1", [], ctx.is_stage_eligible)
    ctx.roster.remove("p1")

    assert ctx.stage.on_stage == "p1"
    assert builder.compute(ctx).on_stage_source_ids == ()


def test_to_dict_shape():
    constraints = ReceiverConstraints(last_n=5, default_max_height=360, on_stage_source_ids=("a-video",))
    assert constraints.to_dict() == {
        "lastN": 5,
        "defaultConstraints": {"maxHeight": 360},
        "onStageSources": ["a-video"],
    }
