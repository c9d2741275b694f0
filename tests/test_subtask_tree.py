"""Tests for the nested subtask tree helpers."""

import pytest

from showerlog.services import subtask_tree as tree


def _tree() -> list[dict]:
    return [
        {
            "id": 1,
            "title": "Write report",
            "completed": False,
            "subtasks": [
                {"id": 2, "title": "Research", "completed": True, "subtasks": []},
                {
                    "id": 3,
                    "title": "Draft",
                    "completed": False,
                    "subtasks": [
                        {"id": 7, "title": "Intro", "completed": True},
                        {"id": 8, "title": "Body", "completed": False},
                    ],
                },
            ],
        },
        {"id": 4, "title": "Send it", "completed": False},
    ]


def test_leaf_progress_follows_flag():
    assert tree.calculate_progress({"completed": True}) == 100
    assert tree.calculate_progress({"completed": False}) == 0


def test_parent_progress_counts_fully_done_children():
    root = _tree()[0]
    # Research done, Draft half done
    assert tree.calculate_progress(root) == 50
    assert tree.calculate_progress(root["subtasks"][1]) == 50


def test_parent_progress_rounds():
    node = {"subtasks": [{"completed": True}, {"completed": False}, {"completed": False}]}
    assert tree.calculate_progress(node) == 33


def test_parent_flag_is_ignored_when_it_has_children():
    node = {"completed": True, "subtasks": [{"completed": False}]}
    assert tree.calculate_progress(node) == 0


@pytest.mark.parametrize(
    ("label", "hours"),
    [
        ("30 minutes", 0.5),
        ("2 hours", 2),
        ("3-5 days", 24),
        ("1 week", 40),
        ("2 months", 320),
        ("some time", 1),
        ("", 1),
    ],
)
def test_parse_estimated_hours(label, hours):
    assert tree.parse_estimated_hours(label) == pytest.approx(hours)


@pytest.mark.parametrize(
    ("node", "depth", "expected"),
    [
        ({"difficulty": "medium", "estimated_time": "2 hours"}, 0, True),
        ({"difficulty": "hard", "estimated_time": "3 days"}, 2, True),
        ({"difficulty": "medium", "estimated_time": "1 week"}, 0, True),
        ({"difficulty": "medium", "estimated_time": "1 hour"}, 0, False),
        ({"difficulty": "medium", "estimated_time": "45 minutes"}, 0, False),
        ({"difficulty": "easy", "estimated_time": "3 days"}, 0, False),
        ({"difficulty": "hard", "estimated_time": "3 days"}, 4, False),
    ],
)
def test_can_breakdown(node, depth, expected):
    assert tree.can_breakdown(node, depth) is expected


def test_can_breakdown_respects_custom_max_depth():
    node = {"difficulty": "hard", "estimated_time": "3 days"}
    assert tree.can_breakdown(node, 1, max_depth=2)
    assert not tree.can_breakdown(node, 2, max_depth=2)


def test_find_subtask_reports_depth_and_ancestors():
    located = tree.find_subtask(_tree(), 8)
    assert located.node["title"] == "Body"
    assert located.depth == 2
    assert located.ancestors == ["Write report", "Draft"]
    assert tree.breadcrumb("Finish the quarter", located) == "Finish the quarter > Write report > Draft > Body"


def test_find_subtask_missing():
    assert tree.find_subtask(_tree(), 42) is None


def test_set_completed_returns_new_tree():
    original = _tree()
    updated = tree.set_completed(original, 8, True)

    assert tree.find_subtask(updated, 8).node["completed"] is True
    assert tree.find_subtask(original, 8).node["completed"] is False
    assert tree.calculate_progress(updated[0]) == 100


def test_set_completed_unknown_id():
    assert tree.set_completed(_tree(), 42, True) is None


def test_attach_children_assigns_fresh_ids():
    updated = tree.attach_children(
        _tree(),
        4,
        [
            {"title": "Find address", "difficulty": "easy", "completed": True},
            {"title": "Press send", "difficulty": "extreme"},
        ],
    )
    parent = tree.find_subtask(updated, 4).node
    assert parent["expanded"] is True
    assert [c["id"] for c in parent["subtasks"]] == [9, 10]
    assert all(c["completed"] is False for c in parent["subtasks"])
    assert parent["subtasks"][1]["difficulty"] == "medium"


def test_attach_children_unknown_id():
    assert tree.attach_children(_tree(), 42, [{"title": "x"}]) is None


def test_tree_levels():
    assert tree.tree_levels([]) == 0
    assert tree.tree_levels(_tree()) == 3
    assert tree.max_id(_tree()) == 8


def test_total_estimated_hours_takes_larger_of_task_and_children():
    tasks = [
        {
            "estimated_time": "1 hour",
            "subtasks": [
                {"estimated_time": "2 hours"},
                {"estimated_time": "90 minutes"},
            ],
        },
        {"estimated_time": "1 day"},
    ]
    assert tree.total_estimated_hours(tasks) == pytest.approx(3.5 + 8)
    assert tree.total_estimated_hours([]) == 0
