"""Tests for constant and default patching of form values."""

from __future__ import annotations

from connector_form.form.patcher import patch_values
from connector_form.models.widget_info import WidgetInfo
from connector_form.schema.field_tree import build_form
from connector_form.schema.normalizer import build_canonical_schema

CC = "connectionConfiguration"


def test_constant_overwrites_existing_value():
    values = {CC: {"region": "eu-west-1"}}
    widgets = {(CC, "region"): WidgetInfo(const="us-east-1")}
    assert patch_values(values, widgets) == {CC: {"region": "us-east-1"}}


def test_default_fills_missing_and_none_only():
    values = {CC: {"port": None, "host": "db", "schema": ""}}
    widgets = {
        (CC, "port"): WidgetInfo(default=5432),
        (CC, "host"): WidgetInfo(default="localhost"),
        (CC, "schema"): WidgetInfo(default="public"),
        (CC, "timeout"): WidgetInfo(default=30),
    }
    assert patch_values(values, widgets) == {
        CC: {"port": 5432, "host": "db", "schema": "", "timeout": 30}
    }


def test_constants_are_written_before_defaults():
    widgets = {
        (CC, "auth", "method"): WidgetInfo(default="basic"),
        (CC, "auth"): WidgetInfo(const={"method": "oauth"}),
    }
    assert patch_values({}, widgets) == {CC: {"auth": {"method": "oauth"}}}


def test_missing_parents_are_created():
    widgets = {(CC, "ssl_mode", "mode"): WidgetInfo(const="disable")}
    assert patch_values({}, widgets) == {CC: {"ssl_mode": {"mode": "disable"}}}


def test_envelope_paths_are_left_alone():
    widgets = {("name",): WidgetInfo(const="fixed"), ("serviceType",): WidgetInfo(default="x")}
    assert patch_values({"name": "mine"}, widgets) == {"name": "mine"}


def test_input_values_are_not_mutated():
    values = {CC: {"region": "eu-west-1"}}
    patch_values(values, {(CC, "region"): WidgetInfo(const="us-east-1")})
    assert values == {CC: {"region": "eu-west-1"}}


def test_non_object_parent_is_skipped():
    values = {CC: {"auth": "legacy-token"}}
    widgets = {(CC, "auth", "token"): WidgetInfo(default="changeme")}
    assert patch_values(values, widgets) == {CC: {"auth": "legacy-token"}}


def test_stale_entries_are_dropped_with_tree(file_spec):
    build = build_form(build_canonical_schema(file_spec))
    widgets = {
        (CC, "auth", "token"): WidgetInfo(default="changeme"),
        (CC, "format"): WidgetInfo(default="csv"),
    }
    patched = patch_values({CC: {}}, widgets, build.tree)
    assert patched == {CC: {"format": "csv"}}
