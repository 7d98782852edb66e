import json

import pytest
from typer.testing import CliRunner

from loadclient.config import Config
from loadclient.main import app, render_summary, run_simulation

runner = CliRunner()


@pytest.mark.asyncio
async def test_run_simulation_summarizes_every_client():
    config = Config.from_dict({"clients": {"num_clients": 3, "client_interval_ms": 0}})

    summaries = await run_simulation(config, duration_s=0)

    assert [summary.index for summary in summaries] == [0, 1, 2]
    for summary in summaries:
        assert summary.roster_count == 3
        assert summary.constraints.default_max_height == 360
        assert summary.rejected == 0
    assert render_summary(summaries).row_count == 3


def test_show_config_prints_merged_config(tmp_path, monkeypatch):
    monkeypatch.delenv("LOADCLIENT_ROOM_NAME", raising=False)
    path = tmp_path / "room.yml"
    path.write_text("room:\n  name: soak\n", encoding="utf-8")

    result = runner.invoke(app, ["show-config", "--config", str(path)])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["room"]["name"] == "soak"


def test_invalid_config_exits_with_code_two(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("policy:\n  last_n_limits: {'*': 5, 3: 8}\n", encoding="utf-8")

    result = runner.invoke(app, ["show-config", "--config", str(path)])

    assert result.exit_code == 2
