#!/usr/bin/env python3
"""
Test Prometheus metrics sink functionality
"""

import os
import sys
from unittest.mock import Mock, patch

import pytest
import requests

# Add the src directory to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "src"))

from pdb_reaper.exceptions import MetricsError
from pdb_reaper.metrics import PDB_REAPER_RESULT_METRIC, PrometheusMetricsSink

TAGS = {"namespace": "default", "pdb": "web", "reason": "BlockingPodDisruptionBudget"}


def sample(sink, tags):
    return sink.registry.get_sample_value(PDB_REAPER_RESULT_METRIC, tags)


def test_set_gauge_records_value():
    sink = PrometheusMetricsSink()

    sink.set_gauge(PDB_REAPER_RESULT_METRIC, TAGS, 0)
    assert sample(sink, TAGS) == 0.0

    sink.set_gauge(PDB_REAPER_RESULT_METRIC, TAGS, 1)
    assert sample(sink, TAGS) == 1.0


def test_set_gauge_missing_tag_raises():
    sink = PrometheusMetricsSink()
    with pytest.raises(MetricsError):
        sink.set_gauge(PDB_REAPER_RESULT_METRIC, {"namespace": "default"}, 1)


def test_exposition_contains_labels():
    sink = PrometheusMetricsSink()
    sink.set_gauge(PDB_REAPER_RESULT_METRIC, TAGS, 1)

    text = sink.exposition().decode()

    assert 'governor_pdb_reaper_result{namespace="default",pdb="web",reason="BlockingPodDisruptionBudget"} 1.0' in text


def test_push_without_gateway_is_noop():
    sink = PrometheusMetricsSink()
    with patch("pdb_reaper.metrics.requests.put") as put:
        assert sink.push() is False
    put.assert_not_called()


def test_push_to_pushgateway():
    sink = PrometheusMetricsSink("http://localhost:9091/", job_name="pdb_reaper_test")
    sink.set_gauge(PDB_REAPER_RESULT_METRIC, TAGS, 1)

    with patch("pdb_reaper.metrics.requests.put") as put:
        put.return_value = Mock(raise_for_status=Mock())
        assert sink.push() is True

    args, kwargs = put.call_args
    assert args[0] == "http://localhost:9091/metrics/job/pdb_reaper_test"
    assert b"governor_pdb_reaper_result" in kwargs["data"]
    assert kwargs["timeout"] == 10


def test_push_failure_is_not_raised():
    sink = PrometheusMetricsSink("http://localhost:9091")
    with patch("pdb_reaper.metrics.requests.put", side_effect=requests.ConnectionError("refused")):
        assert sink.push() is False
