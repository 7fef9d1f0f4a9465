import json

import pandas as pd

from record_dedupe.cli import EXIT_DEDUPE_ERROR, main


def _write_visits(path) -> None:
    pd.DataFrame(
        {
            "id": [1, 1, 2, 3, 3],
            "status": ["pending", "active", "pending", "closed", "active"],
            "value": [3, 8, 1, 4, 2],
            "site": ["Cork", "Cork", "Dublin", "Cork", "Cork"],
        }
    ).to_csv(path, index=False)


def test_run_applies_rule_and_writes_outputs(tmp_path, capsys) -> None:
    input_path = tmp_path / "visits.csv"
    output_path = tmp_path / "out" / "deduplicated.csv"
    summary_path = tmp_path / "out" / "summary.json"
    _write_visits(input_path)

    code = main(
        [
            "run",
            "--input", str(input_path),
            "--key", "id",
            "--rule", "status=active",
            "--output", str(output_path),
            "--summary", str(summary_path),
        ]
    )

    assert code == 0
    out = pd.read_csv(output_path)
    assert out.to_dict(orient="records") == [
        {"id": 1, "status": "active", "value": 8, "site": "Cork"},
        {"id": 2, "status": "pending", "value": 1, "site": "Dublin"},
        {"id": 3, "status": "active", "value": 2, "site": "Cork"},
    ]
    summary = json.loads(summary_path.read_text(encoding="utf-8"))
    assert summary["input_count"] == 5
    assert summary["output_count"] == 3
    assert summary["duplicate_key_count"] == 2
    assert summary["priority_rule"] == "status == 'active'"
    assert "kept=3" in capsys.readouterr().out


def test_run_with_order_rule_sharding_and_workbook(tmp_path) -> None:
    input_path = tmp_path / "visits.csv"
    output_path = tmp_path / "deduplicated.csv"
    workbook_path = tmp_path / "by_site.xlsx"
    _write_visits(input_path)

    code = main(
        [
            "run",
            "--input", str(input_path),
            "--key", "id",
            "--rule", "value:desc",
            "--output", str(output_path),
            "--workbook", str(workbook_path),
            "--partition-by", "site",
            "--shard-size", "2",
        ]
    )

    assert code == 0
    assert list(pd.read_csv(output_path)["value"]) == [8, 1, 4]
    sheets = pd.read_excel(workbook_path, sheet_name=None)
    assert list(sheets) == ["Cork", "Dublin"]
    assert len(sheets["Cork"]) == 2


def test_run_normalize_matches_case_insensitively(tmp_path) -> None:
    input_path = tmp_path / "people.csv"
    output_path = tmp_path / "deduplicated.csv"
    pd.DataFrame({"email": ["Ann@x.org", "ann@x.org ", "bob@x.org"], "n": [1, 2, 3]}).to_csv(input_path, index=False)

    code = main(
        [
            "run",
            "--input", str(input_path),
            "--key", "email",
            "--normalize", "casefold",
            "--output", str(output_path),
        ]
    )

    assert code == 0
    out = pd.read_csv(output_path)
    assert list(out["n"]) == [1, 3]
    assert list(out["email"]) == ["Ann@x.org", "bob@x.org"]


def test_run_fails_without_writing_output_on_missing_key_column(tmp_path, capsys) -> None:
    input_path = tmp_path / "visits.csv"
    output_path = tmp_path / "deduplicated.csv"
    _write_visits(input_path)

    code = main(["run", "--input", str(input_path), "--key", "patient_id", "--output", str(output_path)])

    assert code == EXIT_DEDUPE_ERROR
    assert not output_path.exists()
    assert "MalformedRecordError" in capsys.readouterr().out


def test_run_rejects_workbook_without_partition(tmp_path) -> None:
    input_path = tmp_path / "visits.csv"
    _write_visits(input_path)

    code = main(
        [
            "run",
            "--input", str(input_path),
            "--key", "id",
            "--output", str(tmp_path / "out.csv"),
            "--workbook", str(tmp_path / "out.xlsx"),
        ]
    )

    assert code == EXIT_DEDUPE_ERROR


def test_run_test_generates_dataset_and_summary(tmp_path, capsys) -> None:
    code = main(
        [
            "--log-format", "json",
            "run-test",
            "--size", "200",
            "--seed", "3",
            "--rule-preset", "highest-value",
            "--output-dir", str(tmp_path),
            "--show-groups", "2",
        ]
    )

    assert code == 0
    dataset = pd.read_csv(tmp_path / "test_dataset.csv")
    output = pd.read_csv(tmp_path / "deduplicated.csv")
    summary = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))

    assert len(dataset) == 200
    assert len(output) == dataset["id"].nunique()
    assert output["id"].is_unique
    assert summary["output_count"] == len(output)
    assert summary["priority_rule"] == "value desc"
    assert "sample_groups=" in capsys.readouterr().out


def test_invalid_environment_setting_exits_with_error(monkeypatch, capsys) -> None:
    monkeypatch.setenv("RECORD_DEDUPE_LOG_FORMAT", "xml")

    assert main(["run-test"]) == EXIT_DEDUPE_ERROR
    assert "RECORD_DEDUPE_LOG_FORMAT" in capsys.readouterr().err


def test_run_rejects_unknown_partition_column_before_writing(tmp_path) -> None:
    input_path = tmp_path / "visits.csv"
    output_path = tmp_path / "deduplicated.csv"
    workbook_path = tmp_path / "by_region.xlsx"
    _write_visits(input_path)

    code = main(
        [
            "run",
            "--input", str(input_path),
            "--key", "id",
            "--output", str(output_path),
            "--workbook", str(workbook_path),
            "--partition-by", "region",
        ]
    )

    assert code == EXIT_DEDUPE_ERROR
    assert not output_path.exists()
    assert not workbook_path.exists()


def test_negative_shard_size_is_rejected(tmp_path) -> None:
    input_path = tmp_path / "visits.csv"
    output_path = tmp_path / "deduplicated.csv"
    _write_visits(input_path)

    code = main(
        ["run", "--input", str(input_path), "--key", "id", "--output", str(output_path), "--shard-size", "-1"]
    )

    assert code == EXIT_DEDUPE_ERROR
    assert not output_path.exists()
    assert main(["run-test", "--output-dir", str(tmp_path / "test"), "--shard-size", "-5"]) == EXIT_DEDUPE_ERROR
    assert not (tmp_path / "test").exists()
