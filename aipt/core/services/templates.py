"""
File templates — wrapper scripts and freedesktop descriptors.

Pure rendering: no I/O. The output is deterministic for a given
profile, which is what makes reruns byte-identical.
"""

from __future__ import annotations

from xml.sax.saxutils import escape

from aipt.core.models.profile import DesktopEntrySpec, MenuCategory

MENU_DOCTYPE = (
    '<!DOCTYPE Menu PUBLIC "-//freedesktop//DTD Menu 1.0//EN"\n'
    ' "http://www.freedesktop.org/standards/menu-spec/1.0/menu.dtd">\n'
)


def render_wrapper(venv_dir: str, target: str) -> str:
    """Shell stub forwarding all arguments to ``<venv_dir>/bin/<target>``."""
    return (
        "#!/usr/bin/env bash\n"
        f'exec {venv_dir}/bin/{target} "$@"\n'
    )


def render_desktop_entry(entry: DesktopEntrySpec, exec_line: str) -> str:
    """Render a ``.desktop`` launcher.

    ``exec_line`` is passed separately because it is expanded against
    the profile paths before rendering.
    """
    categories = "".join(f"{c};" for c in entry.categories)
    return (
        "[Desktop Entry]\n"
        f"Name={entry.name}\n"
        f"Comment={entry.comment}\n"
        f"Exec={exec_line}\n"
        f"Icon={entry.icon}\n"
        f"Terminal={'true' if entry.terminal else 'false'}\n"
        "Type=Application\n"
        f"Categories={categories}\n"
    )


def render_directory_entry(menu: MenuCategory) -> str:
    """Render the ``.directory`` descriptor naming the menu category."""
    return (
        "[Desktop Entry]\n"
        f"Name={menu.name}\n"
        f"Icon={menu.icon}\n"
        "Type=Directory\n"
    )


def render_menu_merge(menu: MenuCategory) -> str:
    """Render the applications-merged fragment grouping the category."""
    return (
        MENU_DOCTYPE
        + "<Menu>\n"
        "  <Name>Applications</Name>\n"
        "  <Menu>\n"
        f"    <Name>{escape(menu.name)}</Name>\n"
        f"    <Directory>{escape(menu.directory_file)}</Directory>\n"
        "    <Include>\n"
        f"      <Category>{escape(menu.include_category)}</Category>\n"
        "    </Include>\n"
        "  </Menu>\n"
        "</Menu>\n"
    )


def render_summary(venv_dir: str, tools: list[str], menu_name: str) -> list[str]:
    """Closing lines printed after a successful run."""
    rule = "=" * 68
    return [
        rule,
        "[✓] AI pen-testing environment ready.",
        f"Tools installed in {venv_dir} and exposed via:",
        f"  - {', '.join(tools)}",
        f"Menu entries added under '{menu_name}' (where supported).",
        rule,
    ]
