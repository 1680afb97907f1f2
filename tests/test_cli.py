import json
import os
from unittest.mock import patch

import pytest

import scan_pipelines
from pipewatch.errors import NoCredential
from pipewatch.github.models import (
    AggregationResult,
    Pipeline,
    Run,
    SkippedRepository,
    SkipReason,
    Workflow,
)


def sample_result(partial=False):
    return AggregationResult(
        pipelines=[
            Pipeline("acme", "api", Workflow(1, "CI", ".github/workflows/ci.yml", "active"),
                     Run(10, "completed", "success", "push", "main", actor="octocat")),
            Pipeline("acme", "web", Workflow(2, "Build | Test", ".github/workflows/b.yml", "active")),
        ],
        skipped=[SkippedRepository("acme", "secret", SkipReason.FORBIDDEN)],
        partial=partial,
        repositories_total=3,
        repositories_done=3,
    )


@pytest.fixture(autouse=True)
def no_file_logging(monkeypatch):
    monkeypatch.setattr(scan_pipelines, "setup_logging", lambda verbosity=1: None)


def test_write_pipeline_report(tmp_path):
    path = scan_pipelines.write_pipeline_report(str(tmp_path), "acme", sample_result())

    text = open(path).read()
    assert path.endswith("acme_pipelines.md")
    assert "| acme/api | CI |" in text
    assert "no runs" in text
    assert "Build \\| Test" in text
    assert "| acme/secret | forbidden |" in text
    assert "Partial result" not in text


@pytest.mark.parametrize("org, filename", [
    ("../x", "x_pipelines.md"),
    ("/etc/cron.d/evil", "evil_pipelines.md"),
    ("..", "org_pipelines.md"),
    ("a b\\c", "a_b_c_pipelines.md"),
])
def test_report_stays_in_output_dir(tmp_path, org, filename):
    out_dir = tmp_path / "reports"

    path = scan_pipelines.write_pipeline_report(str(out_dir), org, sample_result())

    assert os.path.dirname(os.path.abspath(path)) == str(out_dir)
    assert os.path.basename(path) == filename
    assert sorted(p.name for p in tmp_path.iterdir()) == ["reports"]


def test_pipelines_command_prints_json(capsys):
    with patch.object(scan_pipelines, "PipelineService") as svc_cls:
        svc = svc_cls.return_value
        svc.aggregate_pipelines.return_value = sample_result()

        code = scan_pipelines.main(["--token", "t", "pipelines", "--org", "acme", "--no-runs"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert [p["repo"] for p in out["pipelines"]] == ["api", "web"]
    svc.resolve_token.assert_called_once_with(None, "t")
    assert svc.aggregate_pipelines.call_args.kwargs["include_runs"] is False
    svc.close.assert_called_once()


def test_partial_result_exit_code():
    with patch.object(scan_pipelines, "PipelineService") as svc_cls:
        svc_cls.return_value.aggregate_pipelines.return_value = sample_result(partial=True)
        assert scan_pipelines.main(["pipelines", "--org", "acme"]) == 2


def test_errors_are_reported_as_json(capsys):
    with patch.object(scan_pipelines, "PipelineService") as svc_cls:
        svc_cls.return_value.resolve_token.side_effect = NoCredential("Missing token")

        code = scan_pipelines.main(["orgs"])

    assert code == 1
    assert json.loads(capsys.readouterr().err.strip().splitlines()[-1]) == {"error": "Missing token", "status": 401}


def test_job_log_command(capsys):
    with patch.object(scan_pipelines, "PipelineService") as svc_cls:
        svc_cls.return_value.synthesize_job_log.return_value = "Job: build"

        code = scan_pipelines.main(["job-log", "--owner", "acme", "--repo", "api",
                                    "--run-id", "5", "--job-id", "7"])

    assert code == 0
    assert capsys.readouterr().out.strip() == "Job: build"
