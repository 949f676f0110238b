"""
Built-in provisioning catalog.

The static lists a host is provisioned from when no override file is
given. Strings may reference ``{base_dir}``, ``{venv_dir}`` and
``{bin_dir}``; they are expanded against the active profile when the
plan is built.
"""

from __future__ import annotations

# ── Paths ───────────────────────────────────────────────────────

BASE_DIR = "/opt/ai-pt"
BIN_DIR = "/usr/local/bin"
APPLICATIONS_DIR = "/usr/share/applications"
DESKTOP_DIRECTORIES_DIR = "/usr/share/desktop-directories"
MENUS_MERGED_DIR = "/etc/xdg/menus/applications-merged"
STATE_DIR = "/var/lib/aipt"

# ── System packages ─────────────────────────────────────────────

# Leaf applications only. Meta-packages like ubuntu-desktop stay.
REMOVE_PACKAGES = [
    "libreoffice-core",
    "libreoffice-common",
    "libreoffice-writer",
    "libreoffice-calc",
    "libreoffice-impress",
    "thunderbird",
    "totem",
    "rhythmbox",
    "shotwell",
    "simple-scan",
    "cheese",
    "transmission-gtk",
    "gnome-tour",
    "ubuntu-web-launchers",
    "aisleriot",
    "gnome-mahjongg",
    "gnome-mines",
    "gnome-sudoku",
]

BASE_PACKAGES = [
    "ca-certificates",
    "curl",
    "wget",
    "git",
    "jq",
    "pkg-config",
    "build-essential",
    "python3",
    "python3-venv",
    "python3-pip",
    "python3-dev",
    "libffi-dev",
    "libssl-dev",
    "libxml2-dev",
    "libxslt1-dev",
    "zlib1g-dev",
    "libjpeg-dev",
    "libpng-dev",
    "libtiff5",
    "libopenblas-base",
    "xdg-utils",
    "desktop-file-utils",
    "xterm",
    "gnome-terminal",
]

# ── Node.js ─────────────────────────────────────────────────────

NODE_SETUP_URL = "https://deb.nodesource.com/setup_18.x"
NODE_VERSION_PATTERN = r"^v1[89]|^v2[0-9]"
NODE_GLOBAL_TOOLS = ["promptfoo"]

# ── Python environment ──────────────────────────────────────────

BOOTSTRAP_PACKAGES = ["pip", "setuptools", "wheel"]

# Adversarial ML (CV/NLP), LLM red teaming, model supply-chain scanning
SECURITY_LIBRARIES = [
    "adversarial-robustness-toolbox",
    "textattack",
    "OpenAttack",
    "foolbox",
    "garak>=0.10",
    "modelscan",
    "llm-guard",
]

SOURCES = [
    {
        "name": "counterfit",
        "url": "https://github.com/Azure/counterfit.git",
        "optional": False,
    },
    {
        "name": "vigil-llm",
        "url": "https://github.com/deadbits/vigil-llm.git",
        "optional": True,
    },
]

NLTK_CORPORA = ["stopwords"]

# ── Wrappers ────────────────────────────────────────────────────

WRAPPERS = [
    {"command": "garak", "target": "garak"},
    {"command": "textattack", "target": "textattack"},
    {"command": "modelscan", "target": "modelscan"},
    {"command": "counterfit", "target": "counterfit"},
]

# Global tools whose install location varies (/usr/bin vs /usr/local/bin)
LINKED_COMMANDS = ["promptfoo"]

# ── Desktop integration ─────────────────────────────────────────

DESKTOP_ICON = "utilities-terminal"
DESKTOP_CATEGORIES = ["Security", "Education", "Development"]

DESKTOP_ENTRIES = [
    {
        "file_name": "garak.desktop",
        "name": "Garak — LLM Vulnerability Scanner",
        "comment": "Probe LLMs for jailbreaks, prompt injection, leakage, toxicity, etc.",
        "exec_line": "{bin_dir}/garak --help",
    },
    {
        "file_name": "counterfit.desktop",
        "name": "Counterfit — ML Security CLI",
        "comment": "Run adversarial ML assessments across image, text, and tabular targets.",
        "exec_line": "{bin_dir}/counterfit",
    },
    {
        "file_name": "promptfoo.desktop",
        "name": "Promptfoo — LLM Evaluator",
        "comment": "Test prompts, assertions, and guardrails for LLM apps.",
        "exec_line": "{bin_dir}/promptfoo --help",
    },
    {
        "file_name": "modelscan.desktop",
        "name": "ModelScan — Scan ML Models",
        "comment": "Detect unsafe code in serialized ML models (pickle, h5, TF SavedModel).",
        "exec_line": "{bin_dir}/modelscan -h",
    },
    {
        "file_name": "textattack.desktop",
        "name": "TextAttack — NLP Attacks",
        "comment": "Generate adversarial text examples for NLP models.",
        "exec_line": "{bin_dir}/textattack --help",
    },
    {
        "file_name": "vigil-llm.desktop",
        "name": "Vigil-LLM — Prompt Injection Scanner (Experimental)",
        "comment": "Detect LLM prompt injections and jailbreaks using Vigil",
        "exec_line": (
            '/usr/bin/env bash -lc "cd {base_dir}/vigil-llm && '
            '{venv_dir}/bin/python vigil-server.py --conf conf/server.conf"'
        ),
        "only_if_exists": "{base_dir}/vigil-llm/vigil-server.py",
    },
]

MENU = {
    "name": "AI Pen Testing",
    "icon": "applications-science",
    "directory_file": "ai-pen-testing.directory",
    "menu_file": "ai-pen-testing.menu",
    "include_category": "Security",
}
