import json

import numpy as np
import pandas as pd

from painpoint.api.analyze import load_inputs
from painpoint.cli.main import main, write_report
from painpoint.core.config import AnalysisConfig
from painpoint.core.models import (
    AnalysisReport,
    ClusterAssignments,
    ClusterCandidate,
    MetricSelection,
)


def make_survey(n_respondents=50, seed=0):
    """Survey export as written by the survey tool, all ratings as coded text."""
    rng = np.random.default_rng(seed)

    def rated(low, high):
        return [f"{v} = answer" for v in rng.integers(low, high + 1, size=n_respondents)]

    return pd.DataFrame({
        "ID": list(range(1, n_respondents + 1)),
        "IMP_1": rated(4, 5),
        "SAT_1": rated(1, 2),
        "IMP_2": rated(1, 3),
        "SAT_2": rated(1, 5),
        "IMP_3": rated(3, 5),
        "SAT_3": rated(3, 5),
        "age_group": list(rng.choice(["18-29", "30-44", "45-59"], size=n_respondents)),
        "frequency": [None if i % 10 == 0 else "Weekly" if i % 3 else "Daily" for i in range(n_respondents)],
        "PR1_01": list(rng.choice(["selected", "not selected"], size=n_respondents)),
    })


def make_workbook(path):
    survey = make_survey()
    metrics = pd.DataFrame({
        "key": [1, 2, 3],
        "label": ["Staff respond quickly", "Parking is available", "Opening hours fit my day"],
    })
    profiling = pd.DataFrame({"key": ["PR1_01"], "label": ["Uses the mobile app"]})

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        survey.to_excel(writer, sheet_name="survey", index=False)
        metrics.to_excel(writer, sheet_name="metrics", index=False)
        profiling.to_excel(writer, sheet_name="profiling", index=False)

    return path


def test_load_inputs(tmp_path):
    path = make_workbook(tmp_path / "survey.xlsx")

    survey, metric_labels, profiling_labels = load_inputs(path, AnalysisConfig.default())

    assert len(survey) == 50
    assert metric_labels.get_text(3) == "Opening hours fit my day"
    assert profiling_labels.get_text("PR1_01") == "Uses the mobile app"


def test_cli_analyze(tmp_path):
    path = make_workbook(tmp_path / "survey.xlsx")
    output = tmp_path / "out"

    main(["analyze", str(path), "-o", str(output)])

    report = json.loads((output / "report.json").read_text(encoding="utf-8"))
    assert report["n_respondents"] == 50
    assert [m["metric_id"] for m in report["selection"]["metrics"]] == [1, 3]
    assert (output / "pain_points.png").exists()
    assert (output / "cluster_scores.png").exists()


def reject_constant(token):
    raise ValueError(f"Non-standard JSON token {token}")


def test_write_report_nan_ratio_is_null(tmp_path):
    report = AnalysisReport(
        n_respondents=3,
        n_metrics=1,
        cluster_candidates=[ClusterCandidate(k=2, ratio=float("nan")), ClusterCandidate(k=3, ratio=1.5)],
        clusters=ClusterAssignments(k=3, random_state=42, assignments={1: 0, 2: 1, 3: 2}),
        selection=MetricSelection(threshold=3.5, metrics=[]),
        predictions=[],
    )

    path = write_report(report, tmp_path / "report.json")

    parsed = json.loads(path.read_text(encoding="utf-8"), parse_constant=reject_constant)
    assert [c["ratio"] for c in parsed["cluster_candidates"]] == [None, 1.5]


def test_cli_consumption(tmp_path):
    path = tmp_path / "strom.csv"
    path.write_text(
        "Jahr;Monat;Tag;Stromverbrauch\n"
        "2021;1;1;1,5\n2021;1;2;2\n2021;2;1;3\n"
        "2023;1;1;4\n2023;1;2;5\n2023;2;1;6\n",
        encoding="utf-8")
    output = tmp_path / "out"

    main(["consumption", str(path), "-o", str(output), "--years", "2021", "2023"])

    assert (output / "daily_consumption.png").exists()
    assert (output / "monthly_consumption.png").exists()
    assert (output / "daily_consumption_compare.png").exists()
