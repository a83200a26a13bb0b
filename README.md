# yarb

A Roblox player bootstrapper for the command line. It downloads the player
from the official CDN, keeps it up to date, can check installed files against
saved SHA-256 signatures, applies your FastFlags and file modifications while
the game runs, and launches it.

## Installation

```
pip install .
```

## Usage

Check for a new Roblox version and install it if needed:

```
yarb update
```

Bring the installation up to date (or verify it) and start the player. Progress
is printed as `Status: ...` lines:

```
yarb launch
```

Start from a protocol link, as the browser hands it over:

```
yarb launch "roblox-player:1+launchmode:play+launchtime:0+channel:live"
```

For `roblox-player:` links the `launchtime` field is set to the current time
in milliseconds and the `channel` field is dropped before the player is
started. `roblox:` links are passed on unchanged; any other payload is
rejected with a logged error.

When `prevent_multi_launch` is on and `RobloxPlayerBeta.exe` is already
running, the launch is abandoned. Otherwise the mods are applied, the
FastFlags are written to `Game/ClientSettings/ClientAppSettings.json`, the
player is run and waited for, and afterwards the original files are restored
and the FastFlags file removed.

The exit status is 0 on success and 1 when a command fails.

## Data folder

Everything lives under `yarb` in the folder named by the `LOCALAPPDATA`
environment variable (the program stops with an error if it is not set):

- `Game/` — the installed Roblox player
- `Mods/` — files that replace game files of the same relative path while
  the game runs
- `config.json` — settings, FastFlags and easy flags
- `hashes.json` — package and file signatures used for efficient downloads
  and integrity checks
- `latest.log` — the log of the last run

## Configuration

`config.json` is read at start-up and written back on exit. It holds:

- `installed_version` — the version currently installed
- `efficient_download` — download only packages whose signature changed
- `verify_integrity_on_launch` — hash every installed file on launch and
  reinstall the package of any file that changed
- `prevent_multi_launch` — refuse to start a second player
- `query_server_location` — look up and log the location of the game server
- `discord_rpc` — look up and log the name of the joined game
- `debug_mode` — log debug messages as well as errors
- `fast_flags` — raw flag names mapped to string values
- `easy_flags` — `disable_telemetry`, `render_api` (`Default`, `D3D10`,
  `D3D11`, `Vulkan`, `OpenGL`), `fps_limit`, `lighting_technology`
  (`Automatic`, `Voxel`, `ShadowMap`, `Future`), `dpi_scaling`, `shadows`,
  `render_distance`, `limit_light_updates`, `light_fades`, `fix_fog`,
  `post_fx`, `better_vision`, `disable_ads`, `disable_fullscreen_titlebar`;
  these are turned into FastFlags on launch (see
  `yarb.modmanager.build_fast_flags`)

If the file is missing or malformed, an error is logged and defaults are used.

## Library use

The pieces can be used on their own: `yarb.game.Bootstrapper` (with
`download`, `verify_file_integrity`, `bootstrap`, `start` and
`watch_roblox_log`), `yarb.game.parse_manifest`, `yarb.game.extract_package`,
`yarb.game.Signatures`, `yarb.modmanager.ModManager`, `yarb.config.Config`
and `yarb.paths.Paths`.

## What it does not do

- There is no settings window: `yarb` with no command, or `yarb gui`, logs an
  error and exits with status 1. Edit `config.json` instead.
- It does not register itself as the handler for `roblox:` and
  `roblox-player:` links.
- It shows no Discord Rich Presence and no desktop notifications; the server
  location and joined game are only written to the log.