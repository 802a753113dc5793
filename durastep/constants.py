"""Shared constants for durastep."""

DEFAULT_TABLE_NAME = "durastep_workflow_runs"
DEFAULT_CONFIG_FILE = "durastep.yaml"
DEFAULT_LOG_LEVEL = "WARNING"
