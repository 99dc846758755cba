"""Logging system for the canister consolidation solver.

This module provides structured logging for tracking search performance,
including runtime metrics, node statistics, pruning reasons and incumbent
progression. NoOpLogger offers the same interface without side effects and
is used when logging is disabled.
"""

import logging
import json
import time
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional


class SearchLogger:
    """Logger for the keep-set branch-and-bound search with performance metrics.

    Tracks:
    - Search progress in a text log file (debug) and on the console (info)
    - Performance metrics (nodes explored, pruned, leaves evaluated, runtime)
    - Incumbent score progression
    - Instance characteristics
    """

    def __init__(self, log_dir: str = "logs", instance_name: str = "default"):
        """Initialize the logger.

        Args:
            log_dir: Directory for log files
            instance_name: Name of the problem instance being solved
        """
        self.instance_name = instance_name
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.run_id = f"{instance_name}_{self.timestamp}"

        self.metrics = {
            "instance_name": instance_name,
            "timestamp": self.timestamp,
            "start_time": None,
            "end_time": None,
            "total_runtime": None,
            "nodes_explored": 0,
            "nodes_pruned": 0,
            "leaves_evaluated": 0,  # keep masks handed to the allocator
            "incumbent_updates": [],
            "pruning_reasons": {},
        }

        self._setup_file_logger()
        self.metrics_file = self.log_dir / f"{self.run_id}_metrics.json"

        self.logger.info(f"Initialized logger for instance: {instance_name}")
        self.logger.info(f"Run ID: {self.run_id}")

    def _setup_file_logger(self):
        """Setup standard file logger for text messages."""
        log_file = self.log_dir / f"{self.run_id}.log"

        self.logger = logging.getLogger(f"fuelplan_{self.run_id}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()

        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
        self.logger.addHandler(console_handler)

    def start_run(self, problem_data: Optional[Dict[str, Any]] = None):
        """Mark the start of a solver run.

        Args:
            problem_data: Dictionary with problem characteristics
                         (n_canisters, total_fuel, group sizes, workload, ...)
        """
        self.metrics["start_time"] = time.time()
        if problem_data:
            self.metrics["problem_data"] = problem_data
        self.logger.info("=" * 60)
        self.logger.info("Starting keep-set search")
        if problem_data:
            self.logger.info(f"Problem: {problem_data}")
        self.logger.info("=" * 60)

    def end_run(self, final_result: Optional[Dict[str, Any]] = None):
        """Mark the end of a solver run, save metrics and release the log file.

        Args:
            final_result: Dictionary with final solution info
        """
        self.metrics["end_time"] = time.time()
        self.metrics["total_runtime"] = self.metrics["end_time"] - self.metrics["start_time"]
        if final_result:
            self.metrics["final_result"] = final_result

        self._save_metrics()

        self.logger.info("=" * 60)
        self.logger.info("Keep-set search completed")
        self.logger.info(f"Total runtime: {self.metrics['total_runtime']:.3f} seconds")
        self.logger.info(f"Nodes explored: {self.metrics['nodes_explored']}")
        self.logger.info(f"Nodes pruned: {self.metrics['nodes_pruned']}")
        self.logger.info(f"Leaves evaluated: {self.metrics['leaves_evaluated']}")
        if self.metrics['nodes_explored'] > 0:
            prune_rate = 100 * self.metrics['nodes_pruned'] / self.metrics['nodes_explored']
            self.logger.info(f"Pruning rate: {prune_rate:.2f}%")
        self.logger.info("=" * 60)
        self.close()

    def log_node_visit(self, node_info: Dict[str, Any]):
        self.metrics["nodes_explored"] += 1
        self.logger.debug(f"Node {self.metrics['nodes_explored']}: {node_info}")

    def log_node_pruned(self, reason: str, node_info: Optional[Dict[str, Any]] = None):
        """Log pruning a node.

        Args:
            reason: Why the node was pruned (e.g. "capacity_infeasible",
                "weight_dominated", "allocation_infeasible")
            node_info: Optional dict with node details
        """
        self.metrics["nodes_pruned"] += 1
        reasons = self.metrics["pruning_reasons"]
        reasons[reason] = reasons.get(reason, 0) + 1

        if node_info:
            self.logger.debug(f"Pruned ({reason}): {node_info}")
        else:
            self.logger.debug(f"Node pruned: {reason}")

    def log_leaf_evaluated(self, keep_counts: list, score: Optional[tuple] = None):
        self.metrics["leaves_evaluated"] += 1
        self.logger.debug(f"Evaluated keep counts {keep_counts}: score={score}")

    def log_incumbent_update(self, score: tuple, keep_counts: list,
                             node_count: Optional[int] = None):
        """Log finding a new best plan.

        Args:
            score: (empty weight, edge count, grams transferred)
            keep_counts: Kept count per spec group
            node_count: Number of nodes explored when found
        """
        update_info = {
            "score": list(score),
            "keep_counts": list(keep_counts),
            "node_count": node_count or self.metrics["nodes_explored"],
            "timestamp": time.time() - self.metrics["start_time"]
        }
        self.metrics["incumbent_updates"].append(update_info)

        self.logger.info("=" * 50)
        self.logger.info(f"NEW INCUMBENT: {tuple(score)}")
        self.logger.info(f"Keep counts: {list(keep_counts)}")
        self.logger.info(f"Found at node: {update_info['node_count']}")
        self.logger.info("=" * 50)

    def _save_metrics(self):
        with open(self.metrics_file, 'w') as f:
            json.dump(self.metrics, f, indent=2)
        self.logger.info(f"Metrics saved to: {self.metrics_file}")

    def get_metrics(self) -> Dict[str, Any]:
        return self.metrics.copy()

    def close(self):
        """Detach and close all handlers."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


class NoOpLogger:
    """Drop-in replacement for SearchLogger that records counters only in memory."""

    def __init__(self):
        self.metrics = {
            "nodes_explored": 0,
            "nodes_pruned": 0,
            "leaves_evaluated": 0,
            "incumbent_updates": [],
            "pruning_reasons": {},
        }

    def start_run(self, problem_data=None):
        pass

    def end_run(self, final_result=None):
        pass

    def log_node_visit(self, node_info):
        self.metrics["nodes_explored"] += 1

    def log_node_pruned(self, reason, node_info=None):
        self.metrics["nodes_pruned"] += 1
        reasons = self.metrics["pruning_reasons"]
        reasons[reason] = reasons.get(reason, 0) + 1

    def log_leaf_evaluated(self, keep_counts, score=None):
        self.metrics["leaves_evaluated"] += 1

    def log_incumbent_update(self, score, keep_counts, node_count=None):
        self.metrics["incumbent_updates"].append(
            {"score": list(score), "keep_counts": list(keep_counts), "node_count": node_count}
        )

    def get_metrics(self):
        return self.metrics.copy()

    def close(self):
        pass


def create_logger(instance_name: str = "default", log_dir: str = "logs") -> SearchLogger:
    """Factory function to create a SearchLogger.

    Args:
        instance_name: Name of the problem instance
        log_dir: Directory for log files

    Returns:
        Configured SearchLogger instance
    """
    return SearchLogger(log_dir=log_dir, instance_name=instance_name)
