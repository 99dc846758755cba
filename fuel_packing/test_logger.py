"""
Tests for the search logger, its metrics file and the log analysis helpers.
"""

import json
import os
import sys
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from analyze_logs import analyze_metrics, compare_runs
from bnb import compute_plan, run_search
from logger import NoOpLogger, create_logger
from models import SPEC_BY_KEY, make_canister


msr110 = SPEC_BY_KEY["msr110"]
msr227 = SPEC_BY_KEY["msr227"]
msr450 = SPEC_BY_KEY["msr450"]


def mixed_canisters():
    return [make_canister(msr110, 90), make_canister(msr227, 200), make_canister(msr450, 100),
            make_canister(msr227, 40)]


def test_metrics_file_written(tmp_path):
    logger = create_logger(instance_name="mixed", log_dir=str(tmp_path))
    result = run_search(mixed_canisters(), logger=logger)

    assert logger.metrics_file.exists()
    assert (tmp_path / f"{logger.run_id}.log").exists()

    metrics = json.loads(logger.metrics_file.read_text())
    assert metrics["instance_name"] == "mixed"
    assert metrics["nodes_explored"] == result['nodes_explored'] > 0
    assert metrics["leaves_evaluated"] >= 1
    assert metrics["problem_data"]["total_fuel"] == 430
    assert metrics["problem_data"]["groups"] == {"msr110": 1, "msr227": 2, "msr450": 1}
    assert metrics["final_result"]["status"] == "success"
    assert metrics["final_result"]["score"] == list(result['score'])
    assert metrics["incumbent_updates"][-1]["score"] == list(result['score'])


def test_enable_logging_creates_files(tmp_path):
    compute_plan(mixed_canisters(), instance_name="flagged", enable_logging=True, log_dir=str(tmp_path))

    assert len(list(tmp_path.glob("flagged_*_metrics.json"))) == 1
    assert len(list(tmp_path.glob("flagged_*.log"))) == 1


def test_noop_logger_counts_in_memory():
    logger = NoOpLogger()
    result = run_search(mixed_canisters(), logger=logger)

    metrics = logger.get_metrics()
    assert metrics["nodes_explored"] == result['nodes_explored']
    assert 0 < metrics["leaves_evaluated"] <= metrics["nodes_explored"]
    assert set(metrics) == {"nodes_explored", "nodes_pruned", "leaves_evaluated",
                            "incumbent_updates", "pruning_reasons"}
    assert sum(metrics["pruning_reasons"].values()) == metrics["nodes_pruned"]
    assert metrics["incumbent_updates"][-1]["score"] == list(result['score'])


def test_incumbent_scores_decrease():
    logger = NoOpLogger()
    cans = [make_canister(msr450, 20), make_canister(msr227, 20), make_canister(msr110, 20)]
    run_search(cans, logger=logger)

    scores = [tuple(u["score"]) for u in logger.get_metrics()["incumbent_updates"]]
    assert scores == sorted(scores, reverse=True)
    assert len(set(scores)) == len(scores)


def test_analyze_and_compare_runs(tmp_path, capsys):
    files = []
    for name in ("first", "second"):
        logger = create_logger(instance_name=name, log_dir=str(tmp_path))
        run_search(mixed_canisters(), logger=logger)
        files.append(logger.metrics_file)

    analyze_metrics(files[0])
    out = capsys.readouterr().out
    assert "ANALYSIS: first" in out
    assert "FINAL RESULT" in out

    df = compare_runs(files)
    assert list(df['instance']) == ["first", "second"]
    assert (df['empty_weight'] == 216).all()
