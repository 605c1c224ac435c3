"""
Guard handlers.

- path_matcher: glob protection levels and check_path
- shell_analyzer: file operations implied by shell commands
- patch_paths: target paths of apply_patch payloads
- policy_engine: per-tool policy decisions
- file_protection: host hook adapter
"""
