"""Tests for catalog_engine.output_manager.OutputManager."""

import json
import os
from datetime import datetime

import pytest

from catalog_engine.output_manager import OutputManager

NOW = datetime(2026, 10, 19, 14, 30)


def test_create_timestamped_dir(tmp_path):
    manager = OutputManager(str(tmp_path), "Shopify Storefront", now=NOW)
    path = manager.create_timestamped_dir()
    assert os.path.basename(path) == "20261019_1430_Shopify_Storefront"
    assert os.path.isdir(path)


def test_get_output_path_requires_dir(tmp_path):
    manager = OutputManager(str(tmp_path), "Shopify_Storefront", now=NOW)
    with pytest.raises(RuntimeError):
        manager.get_output_path("catalog_page.json")


def test_write_json(tmp_path):
    manager = OutputManager(str(tmp_path), "Shopify_Storefront", now=NOW)
    manager.create_timestamped_dir()
    path = manager.write_json("run_results.json", {"success": True, "started_at": NOW})
    with open(path) as f:
        saved = json.load(f)
    assert saved["success"] is True
    assert saved["started_at"] == str(NOW)


def test_cleanup_old_folders(tmp_path):
    for name in ("20260801_0900_Shopify_Storefront", "20261010_0900_Shopify_Storefront", "notes"):
        (tmp_path / name).mkdir()
    (tmp_path / "20200101_0000_file.json").write_text("{}")

    manager = OutputManager(str(tmp_path), "Shopify_Storefront", retention_days=30, now=NOW)

    assert manager.cleanup_old_folders() == 1
    assert sorted(os.listdir(tmp_path)) == [
        "20200101_0000_file.json",
        "20261010_0900_Shopify_Storefront",
        "notes",
    ]


def test_cleanup_disabled(tmp_path):
    (tmp_path / "20200101_0000_Shopify_Storefront").mkdir()
    manager = OutputManager(str(tmp_path), "Shopify_Storefront", retention_days=0, now=NOW)
    assert manager.cleanup_old_folders() == 0


def test_cleanup_missing_base_dir(tmp_path):
    manager = OutputManager(str(tmp_path / "missing"), "Shopify_Storefront", now=NOW)
    assert manager.cleanup_old_folders() == 0
