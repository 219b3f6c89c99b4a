from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from autoapply.cli.app import app

runner = CliRunner()


def test_profile_subscription_and_eligibility_commands(tmp_path: Path, complete_profile: dict) -> None:
    profile_file = tmp_path / "profile.json"
    profile_file.write_text(json.dumps(complete_profile), encoding="utf-8")

    result = runner.invoke(app, ["profile", "set", "--user", "user-1", "--file", str(profile_file)])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["email"] == "ada@example.com"

    result = runner.invoke(app, ["agent", "eligibility", "--user", "user-1"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["limit"] == 2

    result = runner.invoke(app, ["subscription", "set", "--user", "user-1", "--limit", "7"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["agent", "eligibility", "--user", "user-1"])
    body = json.loads(result.output)
    assert body["eligible"] is True
    assert body["quota_remaining"] == 7


def test_profile_set_rejects_unknown_fields(tmp_path: Path) -> None:
    profile_file = tmp_path / "profile.json"
    profile_file.write_text(json.dumps({"favourite_colour": "blue"}), encoding="utf-8")

    result = runner.invoke(app, ["profile", "set", "--user", "user-1", "--file", str(profile_file)])

    assert result.exit_code != 0


def test_applications_list_and_logs(tracker) -> None:
    application_id = tracker.create(user_id="user-1", job_url="https://jobs.example.com/job/1")
    tracker.append_log(application_id, "start", "success", "Starting application process")

    result = runner.invoke(app, ["applications", "list", "--user", "user-1"])
    assert result.exit_code == 0, result.output
    [row] = json.loads(result.output)
    assert row["status"] == "pending"

    result = runner.invoke(app, ["applications", "logs", "--application-id", str(application_id)])
    assert result.exit_code == 0, result.output
    assert [entry["action"] for entry in json.loads(result.output)] == ["start"]

    result = runner.invoke(app, ["applications", "logs", "--application-id", "9999"])
    assert result.exit_code != 0
