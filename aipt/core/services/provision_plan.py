"""
Provisioning plan — turns a profile into the ordered action list.

Each step function returns the actions for one pipeline stage, already
classified as required or best-effort. Nothing here touches the host;
conditions that depend on host state (marker files, commands on PATH,
existing checkouts, installed runtime versions) are carried as guards
or left to the adapters, and are evaluated when the action runs.
"""

from __future__ import annotations

import logging

from aipt.core.engine.executor import ExecutionPlan
from aipt.core.models.action import Action
from aipt.core.models.profile import ProvisionProfile, SourceCheckout
from aipt.core.services.templates import (
    render_desktop_entry,
    render_directory_entry,
    render_menu_merge,
    render_wrapper,
)

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755
DATA_FILE_MODE = 0o644

_NLTK_SNIPPET = (
    "import sys\n"
    "import nltk\n"
    "failed = [c for c in {corpora!r} if not nltk.download(c, quiet=True)]\n"
    "sys.exit('NLTK download failed: ' + ', '.join(failed) if failed else 0)\n"
)


def _apt(action_id: str, operation: str, policy: str = "required", **params) -> Action:
    return Action(
        id=action_id,
        adapter="apt",
        policy=policy,
        params={"operation": operation, **params},
    )


def _fs(action_id: str, operation: str, path: str, policy: str = "required", **params) -> Action:
    return Action(
        id=action_id,
        adapter="filesystem",
        policy=policy,
        params={"operation": operation, "path": path, **params},
    )


# ── Steps ───────────────────────────────────────────────────────


def refresh_step(profile: ProvisionProfile) -> list[Action]:
    return [_apt("refresh:update", "update")]


def remove_step(profile: ProvisionProfile) -> list[Action]:
    """Purge the desktop denylist; unknown package names are tolerated."""
    actions = []
    if profile.remove_packages:
        actions.append(
            _apt(
                "remove:purge",
                "purge",
                policy="best_effort",
                packages=profile.remove_packages,
            )
        )
    actions.append(_apt("remove:autoremove", "autoremove", policy="best_effort"))
    actions.append(_apt("remove:clean", "clean"))
    return actions


def base_step(profile: ProvisionProfile) -> list[Action]:
    if not profile.base_packages:
        return []
    return [
        _apt(
            "base:install",
            "install",
            policy="best_effort",
            packages=profile.base_packages,
            no_install_recommends=True,
        )
    ]


def node_step(profile: ProvisionProfile) -> list[Action]:
    """Install Node.js if the current one is missing or too old, then global tools."""
    node = profile.node
    actions = [
        Action(
            id="node:runtime",
            name="Ensure Node.js runtime",
            adapter="node",
            params={
                "operation": "ensure_runtime",
                "setup_url": node.setup_url,
                "version_pattern": node.version_pattern,
            },
        )
    ]
    if node.global_tools:
        actions.append(
            Action(
                id="node:global-tools",
                adapter="node",
                policy="best_effort",
                params={"operation": "install_global", "packages": node.global_tools},
            )
        )
    return actions


def venv_step(profile: ProvisionProfile) -> list[Action]:
    python = profile.venv_python
    return [
        _fs("venv:base-dir", "mkdir", profile.base_dir, mode=EXECUTABLE_MODE),
        Action(
            id="venv:create",
            adapter="python",
            params={"operation": "venv", "path": profile.venv_path},
        ),
        Action(
            id="venv:bootstrap",
            adapter="python",
            params={
                "operation": "pip_install",
                "python": python,
                "packages": profile.bootstrap_packages,
                "upgrade": True,
            },
        ),
    ]


def toolkits_step(profile: ProvisionProfile) -> list[Action]:
    """Security libraries, source checkouts and auxiliary data.

    The library batch is a single pip call: one unresolvable package
    fails the whole batch, and the batch is required.
    """
    python = profile.venv_python
    actions: list[Action] = []

    if profile.security_libraries:
        actions.append(
            Action(
                id="toolkits:libraries",
                adapter="python",
                params={
                    "operation": "pip_install",
                    "python": python,
                    "packages": profile.security_libraries,
                    "no_cache_dir": True,
                },
            )
        )

    mandatory = [s for s in profile.sources if not s.optional]
    optional = [s for s in profile.sources if s.optional]

    for source in mandatory:
        actions.extend(_source_actions(profile, source))

    if profile.nltk_corpora:
        actions.append(
            Action(
                id="toolkits:nltk",
                name="Download NLTK corpora",
                adapter="python",
                policy="best_effort",
                params={
                    "operation": "run_code",
                    "python": python,
                    "code": _NLTK_SNIPPET.format(corpora=list(profile.nltk_corpora)),
                },
            )
        )

    for source in optional:
        actions.extend(_source_actions(profile, source))

    return actions


def _source_actions(profile: ProvisionProfile, source: SourceCheckout) -> list[Action]:
    dest = profile.checkout_dir(source)
    name = source.name
    policy = "best_effort" if source.optional else "required"
    return [
        Action(
            id=f"toolkits:clone-{name}",
            adapter="git",
            policy=policy,
            params={"operation": "clone", "url": source.url, "dest": dest},
        ),
        Action(
            id=f"toolkits:install-{name}",
            adapter="python",
            policy=policy,
            # An optional clone may have failed; skip rather than fail twice
            only_if_exists=dest if source.optional else None,
            params={
                "operation": "pip_install",
                "python": profile.venv_python,
                "editable": dest,
            },
        ),
    ]


def wrappers_step(profile: ProvisionProfile) -> list[Action]:
    actions = [
        _fs(
            f"wrappers:{w.command}",
            "write",
            f"{profile.bin_dir}/{w.command}",
            content=render_wrapper(profile.venv_path, w.target),
            mode=EXECUTABLE_MODE,
        )
        for w in profile.wrappers
    ]
    # Global npm bin is /usr/bin or /usr/local/bin depending on the install
    for command in profile.linked_commands:
        action = _fs(
            f"wrappers:link-{command}",
            "symlink",
            f"{profile.bin_dir}/{command}",
            policy="best_effort",
            source_command=command,
        )
        action.only_if_command = command
        actions.append(action)
    return actions


def desktop_step(profile: ProvisionProfile) -> list[Action]:
    actions = [_fs("desktop:applications-dir", "mkdir", profile.applications_dir)]

    for entry in profile.desktop_entries:
        action = _fs(
            f"desktop:{entry.file_name}",
            "write",
            f"{profile.applications_dir}/{entry.file_name}",
            content=render_desktop_entry(entry, profile.expand(entry.exec_line)),
            mode=DATA_FILE_MODE,
        )
        if entry.only_if_exists:
            action.only_if_exists = profile.expand(entry.only_if_exists)
        actions.append(action)

    actions.append(
        Action(
            id="desktop:update-database",
            adapter="shell",
            policy="best_effort",
            only_if_command="update-desktop-database",
            params={"command": ["update-desktop-database"]},
        )
    )
    return actions


def menu_step(profile: ProvisionProfile) -> list[Action]:
    """Custom category; not every desktop environment surfaces it."""
    menu = profile.menu
    return [
        _fs("menu:directories-dir", "mkdir", profile.desktop_directories_dir),
        _fs("menu:merged-dir", "mkdir", profile.menus_merged_dir),
        _fs(
            f"menu:{menu.directory_file}",
            "write",
            f"{profile.desktop_directories_dir}/{menu.directory_file}",
            content=render_directory_entry(menu),
            mode=DATA_FILE_MODE,
        ),
        _fs(
            f"menu:{menu.menu_file}",
            "write",
            f"{profile.menus_merged_dir}/{menu.menu_file}",
            content=render_menu_merge(menu),
            mode=DATA_FILE_MODE,
        ),
    ]


def cleanup_step(profile: ProvisionProfile) -> list[Action]:
    return [
        _apt("cleanup:autoremove", "autoremove", policy="best_effort"),
        _apt("cleanup:clean", "clean"),
    ]


# ── Plan ────────────────────────────────────────────────────────


def build_plan(profile: ProvisionProfile, operation_id: str = "") -> ExecutionPlan:
    """Build the full provisioning plan for a profile.

    Args:
        profile: Desired host state.
        operation_id: Identifier stamped on the plan and its report.

    Returns:
        ExecutionPlan with every step in pipeline order.
    """
    plan = ExecutionPlan(operation_id=operation_id)

    plan.add_step("refresh", "Updating APT indexes...", refresh_step(profile))
    plan.add_step("remove", "Removing non-essential packages...", remove_step(profile))
    plan.add_step("base", "Installing base dependencies...", base_step(profile))
    plan.add_step(
        "node",
        f"Installing Node.js and {', '.join(profile.node.global_tools) or 'no'} CLI (global)...",
        node_step(profile),
    )
    plan.add_step(
        "venv",
        f"Creating Python virtual environment at {profile.venv_path} ...",
        venv_step(profile),
    )
    plan.add_step(
        "toolkits",
        "Installing Python AI security libraries into venv...",
        toolkits_step(profile),
    )
    plan.add_step("wrappers", f"Creating CLI wrappers in {profile.bin_dir} ...", wrappers_step(profile))
    plan.add_step("desktop", "Creating desktop entries...", desktop_step(profile))
    plan.add_step("menu", f"Registering '{profile.menu.name}' menu category...", menu_step(profile))
    plan.add_step("cleanup", "Final cleanup...", cleanup_step(profile))

    logger.debug("Planned %d actions across %d steps", plan.total_actions, len(plan.steps))
    return plan
