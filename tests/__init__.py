"""Connector form test suite.

Test organization:
- test_field_tree.py: schema interpretation, initial values, schema errors
- test_widget_store.py: widget metadata seeding, variant selection, reset
- test_validation_schema.py: compiled rules, cast, coercion
- test_value_patcher.py: constant and default patching
- test_session.py: update cycle ordering, connector and variant switches, submit
- test_cli.py: command line exit codes and output

Shared schema fixtures live in conftest.py.
"""
