"""Module Federation settings patcher for ``webpack.config.js``.

The config file is never parsed as JavaScript.  Regions are located with
regular expressions that match a ``{...}`` span with balanced braces up to
``MAX_BRACE_DEPTH`` levels of nesting:

* the shared-modules block: ``shared:`` followed by a span, optionally
  wrapped in a ``share(...)`` / ``shareAll(...)`` call whose second argument
  may be a skip list (``[...]``);
* the remotes block: ``remotes:`` followed by a span.

Known limits: only the first match of each region is rewritten, braces inside
strings or comments are counted like any other brace, and a span nested
deeper than ``MAX_BRACE_DEPTH`` is not matched at all (the patch is then a
no-op for that region). A ``remotes:`` key whose value is not a ``{...}``
literal, such as ``remotes: buildRemotes()``, is left as it is.
"""

from __future__ import annotations

import re
from pathlib import Path

from federated_scaffold.config import Role
from federated_scaffold.errors import Severity, Stage, StageOutcome
from federated_scaffold.scaffolder.tree import VirtualTree
from federated_scaffold.utils import print_error, print_info, print_success


MAX_BRACE_DEPTH = 6

SHARED_PACKAGES: tuple[str, ...] = (
    "@angular/core",
    "@angular/common",
    "@angular/common/http",
    "@angular/router",
)


def _balanced_braces(depth: int) -> str:
    """Pattern for a ``{...}`` span with at most *depth* levels of nesting."""
    pattern = r"\{[^{}]*\}"
    for _ in range(depth - 1):
        pattern = r"\{(?:[^{}]|" + pattern + r")*\}"
    return pattern


_SPAN = _balanced_braces(MAX_BRACE_DEPTH)

_SHARE_ALL_TOKEN = re.compile(r"\bshareAll\b")
_SHARED_BLOCK = re.compile(
    r"\bshared\s*:\s*(?:share(?:All)?\s*\(\s*"
    + _SPAN
    + r"(?:\s*,\s*\[[^\]]*\])?\s*\)|"
    + _SPAN
    + r")"
)
_REMOTES_BLOCK = re.compile(r"\bremotes\s*:\s*" + _SPAN)
_REMOTES_KEY = re.compile(r"\bremotes\s*:")


def render_shared_block(packages: tuple[str, ...] = SHARED_PACKAGES) -> str:
    entries = "".join(
        f"    '{package}': {{ singleton: true, strictVersion: true, requiredVersion: 'auto' }},\n"
        for package in packages
    )
    return "shared: share({\n" + entries + "  })"


NORMALIZED_SHARED_BLOCK = render_shared_block()


# ---------------------------------------------------------------------------
# Pure text transforms
# ---------------------------------------------------------------------------


def normalize_shared(text: str) -> str:
    """Turn ``shareAll`` into ``share`` and pin the shared-modules block.

    Renames every ``shareAll`` token, so the ``require`` line and the call
    site stay in step, then replaces the first shared-modules block with
    :data:`NORMALIZED_SHARED_BLOCK`.  Without a block only the renaming
    applies.
    """
    text = _SHARE_ALL_TOKEN.sub("share", text)
    return _SHARED_BLOCK.sub(lambda _match: NORMALIZED_SHARED_BLOCK, text, count=1)


def reset_remotes(text: str) -> str:
    """Replace the first remotes block with ``remotes: {}``.

    A config with no remotes block gets an empty one inserted in front of
    its shared-modules block.  The text is unchanged when neither block is
    found, or when a ``remotes:`` key holds something other than a span.
    """
    if _REMOTES_BLOCK.search(text):
        return _REMOTES_BLOCK.sub(lambda _match: "remotes: {}", text, count=1)
    if _REMOTES_KEY.search(text):
        return text
    return _SHARED_BLOCK.sub(lambda match: "remotes: {},\n  " + match.group(0), text, count=1)


def patch_webpack_config(text: str, role: Role | str) -> str:
    """Return *text* with federation settings normalized for *role*.

    Both roles get :func:`normalize_shared`; ``host`` additionally gets
    :func:`reset_remotes` so previously declared remotes are dropped.

    Raises:
        UnsupportedRoleError: For any role other than ``host``/``remote``.
            Raised before *text* is touched.
    """
    role = Role.coerce(role)
    patched = normalize_shared(text)
    if role is Role.HOST:
        patched = reset_remotes(patched)
    return patched


# ---------------------------------------------------------------------------
# File-level application
# ---------------------------------------------------------------------------


def _should_write(original: str, patched: str) -> bool:
    # Whitespace-only differences do not warrant a rewrite.
    return bool(patched.strip()) and patched.split() != original.split()


def apply_webpack_patch(config_path: str | Path, role: Role | str) -> StageOutcome:
    """Patch the webpack config on disk.

    An unreadable file is reported and left untouched (``SOFT``).  The file
    is rewritten only when the patch changes it (``OK``); otherwise the
    outcome is ``NOOP``.

    Raises:
        UnsupportedRoleError: For an unsupported role; nothing is read or
            written.
    """
    role = Role.coerce(role)
    path = Path(config_path)
    try:
        original = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print_error(f"Error reading webpack config file {path}: {exc}")
        return StageOutcome(Stage.PATCH_CONFIG, Severity.SOFT, f"Cannot read {path}")

    patched = patch_webpack_config(original, role)
    if not _should_write(original, patched):
        print_info(f"{path} already has normalized federation settings")
        return StageOutcome(Stage.PATCH_CONFIG, Severity.NOOP, f"{path} unchanged")

    path.write_text(patched, encoding="utf-8")
    print_success(f"Updated federation settings in {path} ({role.value})")
    return StageOutcome(Stage.PATCH_CONFIG, Severity.OK, f"Patched {path}")


def update_webpack_in_tree(tree: VirtualTree, config_path: str, role: Role | str) -> StageOutcome:
    """Same contract as :func:`apply_webpack_patch`, against a virtual tree."""
    role = Role.coerce(role)
    original = tree.read_text(config_path)
    if original is None:
        print_error(f"Error reading webpack config file {config_path}")
        return StageOutcome(Stage.PATCH_CONFIG, Severity.SOFT, f"Cannot read {config_path}")

    patched = patch_webpack_config(original, role)
    if not _should_write(original, patched):
        print_info(f"{config_path} already has normalized federation settings")
        return StageOutcome(Stage.PATCH_CONFIG, Severity.NOOP, f"{config_path} unchanged")

    tree.overwrite(config_path, patched)
    print_success(f"Updated federation settings in {config_path} ({role.value})")
    return StageOutcome(Stage.PATCH_CONFIG, Severity.OK, f"Patched {config_path}")
