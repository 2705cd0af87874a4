# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Cask manifest loader.

Casks are read from a YAML rendition of the cask DSL::

    token: firefox
    name: Mozilla Firefox
    version: "89.0,20210601"
    sha256: 1e5f0c...            # or ":no_check"
    url:
      uri: https://download.mozilla.org/?product=firefox-89.0
      user_agent: fake
    homepage: https://www.mozilla.org/firefox/
    appcast: https://www.mozilla.org/en-US/firefox/releases/
    auto_updates: true
    artifacts:
      - app: Firefox.app
      - zap:
          trash: ~/Library/Application Support/Firefox

Symbolic DSL values are written with a leading colon (``:latest``,
``:no_check``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .exceptions import CaskLoadError
from .models import (
    LATEST,
    NO_CHECK,
    Appcast,
    Artifact,
    Cask,
    CaskUrl,
    GenericInstaller,
    InstallAction,
    PackageInstaller,
    PostflightHook,
    PreflightHook,
    Tap,
    UninstallAction,
    Version,
    ZapAction,
)

logger = logging.getLogger(__name__)

_HOME = Path.home()

# Default install locations for "place source at target" stanzas
INSTALL_ACTION_TARGETS: dict[str, Path] = {
    "app": Path("/Applications"),
    "suite": Path("/Applications"),
    "binary": Path("/usr/local/bin"),
    "manpage": Path("/usr/local/share/man"),
    "colorpicker": _HOME / "Library" / "ColorPickers",
    "dictionary": _HOME / "Library" / "Dictionaries",
    "font": _HOME / "Library" / "Fonts",
    "input_method": _HOME / "Library" / "Input Methods",
    "internet_plugin": _HOME / "Library" / "Internet Plug-Ins",
    "audio_unit_plugin": _HOME / "Library" / "Audio" / "Plug-Ins" / "Components",
    "vst_plugin": _HOME / "Library" / "Audio" / "Plug-Ins" / "VST",
    "vst3_plugin": _HOME / "Library" / "Audio" / "Plug-Ins" / "VST3",
    "prefpane": _HOME / "Library" / "PreferencePanes",
    "qlplugin": _HOME / "Library" / "QuickLook",
    "screen_saver": _HOME / "Library" / "Screen Savers",
    "service": _HOME / "Library" / "Services",
}

# ``artifact`` has no default location; its target is mandatory.
TARGET_REQUIRED_ACTIONS = {"artifact"}

CASK_STANZAS = {
    "token",
    "name",
    "version",
    "sha256",
    "url",
    "homepage",
    "appcast",
    "auto_updates",
    "tap",
    "artifacts",
}

HOOK_STANZAS: dict[str, type] = {
    "preflight": PreflightHook,
    "uninstall_preflight": PreflightHook,
    "postflight": PostflightHook,
    "uninstall_postflight": PostflightHook,
}

_TEXT_TAGS = {"tag:yaml.org,2002:int", "tag:yaml.org,2002:float", "tag:yaml.org,2002:timestamp"}


class CaskYamlLoader(yaml.SafeLoader):
    """``SafeLoader`` that keeps plain numeric and date scalars as their source text.

    ``version: 1.10`` stays ``"1.10"`` and an all-digit checksum stays a
    string instead of becoming an ``int``.
    """


CaskYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _TEXT_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class CaskLoader:
    """Loads cask manifests from YAML files."""

    CASK_EXTENSIONS = {".yaml", ".yml"}

    def load_cask(self, cask_path: str | Path) -> Cask:
        """
        Load a cask from a YAML file.

        Args:
            cask_path: Path to the cask file

        Returns:
            Parsed Cask object

        Raises:
            CaskLoadError: If the cask cannot be loaded
        """
        if not isinstance(cask_path, Path):
            cask_path = Path(cask_path)

        if not cask_path.is_file():
            raise CaskLoadError(f"Cask file does not exist: {cask_path}")

        try:
            with open(cask_path, encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise CaskLoadError(f"Failed to read {cask_path}: {e}")

        try:
            data = yaml.load(content, Loader=CaskYamlLoader)
        except yaml.YAMLError as e:
            raise CaskLoadError(f"Failed to parse YAML in {cask_path}: {e}")

        if not isinstance(data, dict):
            raise CaskLoadError(f"{cask_path} does not contain a cask mapping")

        return self.load_from_dict(data, sourcefile_path=cask_path)

    def load_from_dict(self, data: dict[str, Any], sourcefile_path: Path | None = None) -> Cask:
        """Build a :class:`Cask` from an already-parsed mapping."""
        token = data.get("token") or (sourcefile_path.stem if sourcefile_path else None)
        if not token:
            raise CaskLoadError("cask has no token")
        token = str(token)

        unknown = sorted(str(key) for key in data if key not in CASK_STANZAS)
        if unknown:
            raise CaskLoadError(f"unknown stanza(s) in cask '{token}': {', '.join(unknown)}")

        try:
            return Cask(
                token=token,
                name=self._parse_names(data.get("name")),
                version=self._parse_version(data.get("version")),
                sha256=self._parse_sha256(data.get("sha256")),
                url=self._parse_url(data.get("url")),
                homepage=data.get("homepage") or None,
                appcast=self._parse_appcast(data.get("appcast")),
                auto_updates=bool(data.get("auto_updates", False)),
                artifacts=tuple(self._parse_artifacts(data.get("artifacts") or [])),
                tap=self._parse_tap(data.get("tap")) if "tap" in data else self._infer_tap(sourcefile_path),
                sourcefile_path=sourcefile_path,
            )
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise CaskLoadError(f"Invalid cask '{token}': {e}")

    # ------------------------------------------------------------------
    # Stanzas
    # ------------------------------------------------------------------

    @staticmethod
    def _symbol(value: Any) -> str | None:
        """Return the symbol name for ``":latest"``-style values."""
        if isinstance(value, str) and value.startswith(":"):
            return value[1:]
        return None

    def _parse_names(self, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(str(v) for v in value)

    def _parse_version(self, value: Any) -> Version | None:
        if value is None:
            return None
        if self._symbol(value) == "latest":
            return Version(LATEST)
        if isinstance(value, float):
            raise CaskLoadError(f"version {value!r} is not a string; quote it to keep its exact text")
        return Version(value)

    def _parse_sha256(self, value: Any) -> Any:
        if value is None:
            return None
        if self._symbol(value) == "no_check":
            return NO_CHECK
        return value

    def _parse_url(self, value: Any) -> CaskUrl | None:
        if not value:
            return None
        if isinstance(value, str):
            return CaskUrl(value)
        if not isinstance(value, dict):
            raise CaskLoadError(f"url must be a string or a mapping, got: {value!r}")
        user_agent = value.get("user_agent")
        return CaskUrl(
            uri=str(value["uri"]),
            user_agent=self._symbol(user_agent) or user_agent,
            using=self._symbol(value.get("using")) or value.get("using"),
        )

    def _parse_appcast(self, value: Any) -> Appcast | None:
        if not value:
            return None
        if isinstance(value, str):
            return Appcast(value)
        if not isinstance(value, dict):
            raise CaskLoadError(f"appcast must be a string or a mapping, got: {value!r}")
        configuration = value.get("configuration")
        if self._symbol(configuration) == "no_check":
            configuration = NO_CHECK
        elif configuration is not None:
            configuration = str(configuration)
        return Appcast(uri=str(value.get("uri") or value.get("url") or ""), configuration=configuration)

    def _parse_tap(self, value: Any) -> Tap | None:
        if not value:
            return None
        if isinstance(value, str):
            user, _, repo = value.partition("/")
            return Tap(user=user, repo=repo or "cask")
        return Tap(user=str(value["user"]), repo=str(value.get("repo", "cask")))

    @staticmethod
    def _infer_tap(sourcefile_path: Path | None) -> Tap | None:
        """Infer the tap from a ``<user>/homebrew-<repo>/...`` checkout layout."""
        if sourcefile_path is None:
            return None
        parents = sourcefile_path.resolve().parents
        for parent in parents:
            if parent.name.startswith("homebrew-") and parent.parent.name:
                user = parent.parent.name
                if user == "homebrew":
                    user = "Homebrew"
                return Tap(user=user, repo=parent.name[len("homebrew-") :])
        return None

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def _parse_artifacts(self, entries: list[Any]) -> list[Artifact]:
        artifacts: list[Artifact] = []
        for entry in entries:
            if not isinstance(entry, dict) or len(entry) != 1:
                raise CaskLoadError(f"artifact entries must be single-key mappings, got: {entry!r}")
            ((stanza, value),) = entry.items()
            artifacts.append(self._parse_artifact(str(stanza), value))
        return artifacts

    def _parse_artifact(self, stanza: str, value: Any) -> Artifact:
        if stanza in INSTALL_ACTION_TARGETS or stanza in TARGET_REQUIRED_ACTIONS:
            return self._parse_install_action(stanza, value)
        if stanza == "pkg":
            if isinstance(value, dict):
                return PackageInstaller(path=str(value["path"]), allow_untrusted=bool(value.get("allow_untrusted")))
            return PackageInstaller(path=str(value))
        if stanza == "installer":
            value = value or {}
            if not isinstance(value, dict):
                raise CaskLoadError(f"installer must be a mapping with 'manual' or 'script', got: {value!r}")
            return GenericInstaller(manual=value.get("manual"), script=value.get("script"))
        if stanza == "uninstall":
            return UninstallAction(directives=dict(value or {}))
        if stanza == "zap":
            return ZapAction(directives=dict(value or {}))
        if stanza in HOOK_STANZAS:
            return HOOK_STANZAS[stanza](directives=frozenset({stanza}))
        raise CaskLoadError(f"unknown artifact stanza '{stanza}'")

    def _parse_install_action(self, stanza: str, value: Any) -> InstallAction:
        if isinstance(value, dict):
            source = str(value["source"])
            target = value.get("target")
        else:
            source = str(value)
            target = None

        if target is None:
            if stanza in TARGET_REQUIRED_ACTIONS:
                raise CaskLoadError(f"'{stanza}' stanza for {source} requires a target")
            target = str(INSTALL_ACTION_TARGETS[stanza] / Path(source).name)

        return InstallAction(kind=stanza, source=source, target=str(target))

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def find_casks(self, directory: str | Path, recursive: bool = False) -> list[Path]:
        """Return cask files under *directory*, sorted by path."""
        directory = Path(directory)
        pattern = "**/*" if recursive else "*"
        return sorted(
            p for p in directory.glob(pattern) if p.is_file() and p.suffix in self.CASK_EXTENSIONS
        )
