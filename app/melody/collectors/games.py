"""Game library collectors for Steam, Epic Games and GOG Galaxy.

Game data is informational: restoring it reports which games to
reinstall through the launcher, it does not download anything.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.models.feature import CollectorItem
from melody.models.outcome import Outcome, OutcomeKind
from melody.parsers.vdf import VdfParseError, find_key, load, loads
from melody.registry import is_available, key_exists, query_key
from melody.utils.pathexpand import expand_path

logger = logging.getLogger(__name__)

STEAM_REGISTRY_KEY = r"HKCU\Software\Valve\Steam"
STEAM_DEFAULT_PATHS = (r"C:\Program Files (x86)\Steam", r"C:\Program Files\Steam")
EPIC_MANIFEST_DIR = r"%PROGRAMDATA%\Epic\EpicGamesLauncher\Data\Manifests"
GOG_REGISTRY_KEY = r"HKLM\SOFTWARE\WOW6432Node\GOG.com\Games"

_ACF_APPID = re.compile(r'"appid"\s+"(\d+)"', re.IGNORECASE)
_ACF_NAME = re.compile(r'"name"\s+"([^"]*)"', re.IGNORECASE)


def find_steam_root() -> Path | None:
    """Locate the Steam installation directory.

    Returns:
        Path from the SteamPath registry value, else the first existing
        default location, else None.
    """
    if is_available() and key_exists(STEAM_REGISTRY_KEY):
        try:
            keys = query_key(STEAM_REGISTRY_KEY)
        except RuntimeError as e:
            logger.debug("Could not read Steam registry key: %s", e)
            keys = {}
        for values in keys.values():
            steam_path = values.get("SteamPath")
            if steam_path is not None and Path(str(steam_path.data)).is_dir():
                return Path(str(steam_path.data))

    for candidate in STEAM_DEFAULT_PATHS:
        if Path(candidate).is_dir():
            return Path(candidate)
    return None


def steam_library_paths(steam_root: Path) -> list[Path]:
    """Read library folders from ``steamapps/libraryfolders.vdf``.

    Handles both the current layout (``"0" { "path" "..." }``) and the
    legacy one (``"1" "D:\\\\SteamLibrary"``). The Steam root is always
    the first library.
    """
    libraries = [steam_root]
    vdf_path = steam_root / "steamapps" / "libraryfolders.vdf"
    if not vdf_path.is_file():
        return libraries

    try:
        data = load(vdf_path)
    except VdfParseError as e:
        logger.warning("Could not parse %s: %s", vdf_path, e)
        return libraries

    folders = find_key(data, "libraryfolders", {})
    if not isinstance(folders, dict):
        return libraries

    for key, value in folders.items():
        if not key.isdigit():
            continue
        path = find_key(value, "path") if isinstance(value, dict) else value
        if not isinstance(path, str) or not path:
            continue
        library = Path(path)
        if all(os.path.normcase(library) != os.path.normcase(p) for p in libraries):
            libraries.append(library)
    return libraries


def parse_app_manifest(text: str) -> dict[str, Any] | None:
    """Extract game fields from an ``appmanifest_*.acf`` document.

    Falls back to regular expressions for manifests the parser rejects.

    Returns:
        ``{appid, name, installdir, size_on_disk}`` or None without an appid.
    """
    try:
        state = find_key(loads(text), "AppState", {})
    except VdfParseError as e:
        logger.debug("Malformed app manifest, using fallback: %s", e)
        appid_match = _ACF_APPID.search(text)
        if appid_match is None:
            return None
        name_match = _ACF_NAME.search(text)
        return {
            "appid": appid_match.group(1),
            "name": name_match.group(1) if name_match else None,
            "installdir": None,
            "size_on_disk": None,
        }

    if not isinstance(state, dict) or not find_key(state, "appid"):
        return None

    size = find_key(state, "SizeOnDisk")
    return {
        "appid": find_key(state, "appid"),
        "name": find_key(state, "name"),
        "installdir": find_key(state, "installdir"),
        "size_on_disk": int(size) if isinstance(size, str) and size.isdigit() else None,
    }


def _games_restore_outcomes(item: CollectorItem, data: Any, launcher: str) -> list[Outcome]:
    games = data.get("games", []) if isinstance(data, dict) else []
    if not games:
        return []
    names = sorted(str(g.get("name") or g.get("id")) for g in games if isinstance(g, dict))
    detail = f"reinstall {len(names)} game(s) via {launcher}: " + ", ".join(names)
    return [Outcome.skip(item.name, OutcomeKind.COLLECTOR, detail)]


class SteamGamesCollector(Collector):
    """Record installed Steam games across all library folders."""

    kind = "steam_games"

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        steam_root = find_steam_root()
        if steam_root is None:
            return CollectionResult.skipped("Steam is not installed")

        libraries = steam_library_paths(steam_root)
        games: list[dict[str, Any]] = []
        errors: list[str] = []

        for library in libraries:
            steamapps = library / "steamapps"
            if not steamapps.is_dir():
                logger.debug("Steam library without steamapps: %s", library)
                continue
            for manifest in sorted(steamapps.glob("appmanifest_*.acf")):
                try:
                    text = manifest.read_text(encoding="utf-8", errors="replace")
                except OSError as e:
                    errors.append(f"{manifest.name}: {e}")
                    continue
                game = parse_app_manifest(text)
                if game is None:
                    errors.append(f"{manifest.name}: no appid")
                    continue
                games.append({**game, "id": game["appid"], "library": str(library)})

        return CollectionResult(
            data={
                "steam_path": str(steam_root),
                "libraries": [str(p) for p in libraries],
                "games": games,
            },
            errors=errors,
        )

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        return _games_restore_outcomes(item, data, "Steam")


class EpicGamesCollector(Collector):
    """Record games from the Epic Games Launcher ``.item`` manifests.

    Options:
        manifest_dir: Override the manifest directory.
    """

    kind = "epic_games"

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        manifest_dir = expand_path(str(item.options.get("manifest_dir", EPIC_MANIFEST_DIR)))
        if not manifest_dir.is_dir():
            return CollectionResult.skipped("Epic Games Launcher is not installed")

        games: list[dict[str, Any]] = []
        errors: list[str] = []
        for manifest in sorted(manifest_dir.glob("*.item")):
            try:
                entry = json.loads(manifest.read_text(encoding="utf-8-sig"))
            except (OSError, json.JSONDecodeError) as e:
                errors.append(f"{manifest.name}: {e}")
                continue
            if not isinstance(entry, dict) or not entry.get("AppName"):
                errors.append(f"{manifest.name}: missing AppName")
                continue
            games.append(
                {
                    "id": entry["AppName"],
                    "name": entry.get("DisplayName") or entry["AppName"],
                    "install_location": entry.get("InstallLocation"),
                    "version": entry.get("AppVersionString"),
                }
            )

        return CollectionResult(data={"games": games}, errors=errors)

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        return _games_restore_outcomes(item, data, "Epic Games Launcher")


class GogGamesCollector(Collector):
    """Record GOG Galaxy games from the registry."""

    kind = "gog_games"

    def is_available(self, item: CollectorItem) -> bool:
        return is_available()

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        if not key_exists(GOG_REGISTRY_KEY):
            return CollectionResult.skipped("GOG Galaxy is not installed")

        games: list[dict[str, Any]] = []
        for key, values in query_key(GOG_REGISTRY_KEY, recursive=True).items():
            name = values.get("gameName")
            if name is None:
                continue
            game_id = values.get("gameID")
            path = values.get("path")
            version = values.get("ver")
            games.append(
                {
                    "id": str(game_id.data) if game_id else key.rsplit("\\", 1)[-1],
                    "name": str(name.data),
                    "install_location": str(path.data) if path else None,
                    "version": str(version.data) if version else None,
                }
            )
        return CollectionResult(data={"games": games})

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        return _games_restore_outcomes(item, data, "GOG Galaxy")
