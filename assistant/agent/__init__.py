"""Turn orchestration — intent, code-change detection and the manager."""
