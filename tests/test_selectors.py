#!/usr/bin/env python3
"""
Tests for label selector rendering
"""

import os
import sys

import pytest
from kubernetes import client

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "src"))

from pdb_reaper.exceptions import SelectorError
from pdb_reaper.selectors import selector_to_string


def requirement(key, operator, values=None):
    return client.V1LabelSelectorRequirement(key=key, operator=operator, values=values)


def test_missing_and_empty_selectors_render_empty():
    assert selector_to_string(None) == ""
    assert selector_to_string(client.V1LabelSelector()) == ""


def test_match_labels_sorted_by_key():
    selector = client.V1LabelSelector(match_labels={"tier": "web", "app": "shop"})
    assert selector_to_string(selector) == "app=shop,tier=web"


def test_match_expressions():
    selector = client.V1LabelSelector(
        match_labels={"app": "shop"},
        match_expressions=[
            requirement("env", "In", ["prod", "canary"]),
            requirement("track", "NotIn", ["debug"]),
            requirement("owner", "Exists"),
            requirement("legacy", "DoesNotExist"),
        ],
    )
    assert selector_to_string(selector) == (
        "app=shop,env in (canary,prod),!legacy,owner,track notin (debug)"
    )


@pytest.mark.parametrize("expression", [
    requirement("env", "In", []),
    requirement("env", "Exists", ["x"]),
    requirement("env", "GreaterThan", ["1"]),
])
def test_invalid_expressions_raise(expression):
    selector = client.V1LabelSelector(match_expressions=[expression])
    with pytest.raises(SelectorError):
        selector_to_string(selector)
