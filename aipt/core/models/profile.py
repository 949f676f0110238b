"""
Provisioning profile — the declared desired state of the host.

Loaded from the built-in catalog, optionally overridden by a YAML file.
This is the canonical truth: if a package, wrapper or launcher is not
declared here, the provisioner does not touch it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from aipt.core.data import catalog


class NodeRuntime(BaseModel):
    """Node.js runtime requirement and its global npm tools."""

    setup_url: str = catalog.NODE_SETUP_URL
    version_pattern: str = catalog.NODE_VERSION_PATTERN
    global_tools: list[str] = Field(default_factory=lambda: list(catalog.NODE_GLOBAL_TOOLS))


class SourceCheckout(BaseModel):
    """A tool installed in editable mode from a git checkout.

    Optional checkouts are best-effort: clone or install failures are
    recorded but never abort the run.
    """

    name: str
    url: str
    optional: bool = False


class WrapperSpec(BaseModel):
    """An exposed command forwarding into the isolated environment."""

    command: str
    target: str


class DesktopEntrySpec(BaseModel):
    """A freedesktop launcher for one installed tool."""

    file_name: str
    name: str
    comment: str = ""
    exec_line: str
    icon: str = catalog.DESKTOP_ICON
    terminal: bool = True
    categories: list[str] = Field(default_factory=lambda: list(catalog.DESKTOP_CATEGORIES))
    only_if_exists: str | None = None  # write only when this marker exists


class MenuCategory(BaseModel):
    """Custom application-menu category and its merge fragment."""

    name: str = catalog.MENU["name"]
    icon: str = catalog.MENU["icon"]
    directory_file: str = catalog.MENU["directory_file"]
    menu_file: str = catalog.MENU["menu_file"]
    include_category: str = catalog.MENU["include_category"]


def _models(model: type[BaseModel], items: list[dict]) -> list:
    return [model.model_validate(item) for item in items]


class ProvisionProfile(BaseModel):
    """Root desired-state declaration for one host."""

    # ── Paths ────────────────────────────────────────────────────
    base_dir: str = catalog.BASE_DIR
    venv_dir: str = "{base_dir}/venv"
    bin_dir: str = catalog.BIN_DIR
    applications_dir: str = catalog.APPLICATIONS_DIR
    desktop_directories_dir: str = catalog.DESKTOP_DIRECTORIES_DIR
    menus_merged_dir: str = catalog.MENUS_MERGED_DIR
    state_dir: str = catalog.STATE_DIR

    # ── System packages ──────────────────────────────────────────
    remove_packages: list[str] = Field(default_factory=lambda: list(catalog.REMOVE_PACKAGES))
    base_packages: list[str] = Field(default_factory=lambda: list(catalog.BASE_PACKAGES))
    node: NodeRuntime = Field(default_factory=NodeRuntime)

    # ── Isolated environment ─────────────────────────────────────
    bootstrap_packages: list[str] = Field(
        default_factory=lambda: list(catalog.BOOTSTRAP_PACKAGES)
    )
    security_libraries: list[str] = Field(
        default_factory=lambda: list(catalog.SECURITY_LIBRARIES)
    )
    sources: list[SourceCheckout] = Field(
        default_factory=lambda: _models(SourceCheckout, catalog.SOURCES)
    )
    nltk_corpora: list[str] = Field(default_factory=lambda: list(catalog.NLTK_CORPORA))

    # ── Host integration ─────────────────────────────────────────
    wrappers: list[WrapperSpec] = Field(
        default_factory=lambda: _models(WrapperSpec, catalog.WRAPPERS)
    )
    linked_commands: list[str] = Field(default_factory=lambda: list(catalog.LINKED_COMMANDS))
    desktop_entries: list[DesktopEntrySpec] = Field(
        default_factory=lambda: _models(DesktopEntrySpec, catalog.DESKTOP_ENTRIES)
    )
    menu: MenuCategory = Field(default_factory=MenuCategory)

    @property
    def venv_path(self) -> str:
        """The isolated environment directory with placeholders expanded."""
        return self.venv_dir.replace("{base_dir}", self.base_dir)

    @property
    def venv_python(self) -> str:
        return f"{self.venv_path}/bin/python"

    def expand(self, text: str) -> str:
        """Expand ``{base_dir}``, ``{venv_dir}`` and ``{bin_dir}`` in a string.

        Any other brace text (``${HOME}`` in an Exec line, say) is kept as is.
        """
        placeholders = {
            "{base_dir}": self.base_dir,
            "{venv_dir}": self.venv_path,
            "{bin_dir}": self.bin_dir,
        }
        for placeholder, value in placeholders.items():
            text = text.replace(placeholder, value)
        return text

    def checkout_dir(self, source: SourceCheckout) -> str:
        return f"{self.base_dir}/{source.name}"
