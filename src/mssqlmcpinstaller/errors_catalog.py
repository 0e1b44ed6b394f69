"""Actionable error catalog for MssqlMcpInstaller."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_prerequisite": {
        "what": "{tool} is required but was not found on PATH.",
        "next": "Install {tool} manually, open a new terminal, and run the installer again.",
    },
    "missing_credentials": {
        "what": "SQL authentication requires both a username and a password.",
        "next": "Pass `--username` and `--password`, or use `--azure-ad` for Azure AD authentication.",
    },
    "missing_parameter": {
        "what": "Missing required value: {name}.",
        "next": "Pass `{option}` or set `{key}` in the config file.",
    },
    "clone_failed": {
        "what": "Could not clone {repo_url}.",
        "next": "Check your network connection and Git credentials, then retry.",
    },
    "subproject_missing": {
        "what": "Server project not found at {path}.",
        "next": "Verify `--repo-url` points at a repository that contains MssqlMcp/Node.",
    },
    "build_failed": {
        "what": "Building the MCP server in {path} failed.",
        "next": "Run `npm install` in that directory to inspect the error, then retry.",
    },
    "artifact_not_found": {
        "what": "Build finished but no {name} entry point was found under {path}.",
        "next": "Run `npm run build` in that directory and check where the output is written.",
    },
    "insecure_http": {
        "what": "{label} uses insecure HTTP.",
        "next": "Switch to HTTPS or use `--allow-insecure-http` only for trusted endpoints.",
    },
    "patch_download_failed": {
        "what": "Could not download the SQL authentication variant; the original source was restored.",
        "next": "Download {url} manually to {path} and run `npm install` in {project_dir}.",
    },
    "patch_rebuild_failed": {
        "what": "Rebuild after applying the SQL authentication patch failed.",
        "next": "Run `npm install` and `npx tsc` in {project_dir}; SQL authentication may not work until it builds.",
    },
    "patch_url_missing": {
        "what": "No SQL authentication variant URL is configured, so {path} was not patched.",
        "next": "Pass `--patch-url` (or set `patch_url` in the config file) to the SQL authentication variant of src/index.ts and rerun.",
    },
    "patch_restore_failed": {
        "what": "The SQL authentication patch failed and {path} could not be restored automatically.",
        "next": "Copy {backup_path} back to {path} by hand, then run `npm install` in its project directory.",
    },
    "patch_source_missing": {
        "what": "Patchable source {path} does not exist.",
        "next": "SQL authentication may not function. Check the upstream project layout.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
