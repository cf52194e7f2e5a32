#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import dataclasses
import asyncio
import logging

from roku_ecp.internal_types import *

from roku_ecp import (
    __version__ as pkg_version,
    RokuEcpClient,
    RokuDevice,
    RokuSearchParams,
    RokuAppLaunchParams,
    SearchType,
    MediaType,
    TypingPolicy,
    EcpError,
    async_find_roku_devices,
    DISCOVERY_WAIT_TIME,
    DEFAULT_HTTP_TIMEOUT,
  )

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

def _parse_name_value(assignment: str) -> Tuple[str, str]:
    if not '=' in assignment:
        raise CmdExitError(2, f"Expected <name>=<value>, got {assignment!r}")
    name, value = assignment.split('=', 1)
    return name, value

def _print_json(value: Jsonable) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))
    sys.stdout.flush()

def _record_to_json(record: Any) -> JsonableDict:
    return dataclasses.asdict(record)

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True
    _client: Optional[RokuEcpClient] = None

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    @property
    def client(self) -> RokuEcpClient:
        if self._client is None:
            self._client = RokuEcpClient(timeout=self._args.timeout)
        return self._client

    def get_device(self) -> RokuDevice:
        url: str = self._args.url
        return self.client.get_device(url)

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    async def cmd_discover(self) -> int:
        locations = await async_find_roku_devices(
            self._args.max_devices,
            interface=self._args.interface,
            wait_time=self._args.wait_time,
          )
        if self._args.info:
            # device queries block, so they run in the default executor
            loop = asyncio.get_running_loop()
            devices = await asyncio.gather(*(loop.run_in_executor(None, self.client.get_device, url) for url in locations))
            _print_json([ _record_to_json(device) for device in devices ])
        else:
            _print_json(locations)
        return 0

    async def cmd_info(self) -> int:
        _print_json(_record_to_json(self.get_device()))
        return 0

    async def cmd_apps(self) -> int:
        apps = self.client.get_apps(self.get_device(), max_apps=self._args.max_apps)
        _print_json([ _record_to_json(app) for app in apps ])
        return 0

    async def cmd_active_app(self) -> int:
        _print_json(_record_to_json(self.client.get_active_app(self.get_device())))
        return 0

    async def cmd_icon(self) -> int:
        icon = self.client.get_app_icon(self.get_device(), self._args.app_id)
        icon.raise_for_status()
        output: Optional[str] = self._args.output
        if output is None or output == '-':
            sys.stdout.buffer.write(icon.data)
            sys.stdout.flush()
        else:
            with open(output, 'wb') as f:
                f.write(icon.data)
            print(f"Wrote {icon.size} bytes ({icon.content_type}) to {output}", file=sys.stderr)
        return 0

    async def cmd_channels(self) -> int:
        channels = self.client.get_tv_channels(self.get_device(), max_channels=self._args.max_channels)
        _print_json([ _record_to_json(channel) for channel in channels ])
        return 0

    async def cmd_active_channel(self) -> int:
        _print_json(_record_to_json(self.client.get_active_tv_channel(self.get_device())))
        return 0

    async def cmd_key(self) -> int:
        device = self.get_device()
        keys: List[str] = self._args.keys
        for key in keys:
            self.client.send_key(device, key)
        return 0

    async def cmd_launch(self) -> int:
        params = RokuAppLaunchParams(
            app_id=self._args.app_id,
            content_id=self._args.content_id,
            media_type=MediaType[self._args.media_type.upper()],
            extra_params=[ _parse_name_value(x) for x in self._args.params ],
          )
        self.client.launch_app(self.get_device(), params)
        return 0

    async def cmd_launch_channel(self) -> int:
        self.client.launch_tv_channel(self.get_device(), self._args.channel_id)
        return 0

    async def cmd_search(self) -> int:
        params = RokuSearchParams(
            type=SearchType[self._args.type.upper()],
            include_unavailable=self._args.include_unavailable,
            tms_id=self._args.tms_id,
            season=self._args.season,
            auto_select=self._args.auto_select,
            auto_launch=self._args.auto_launch,
            provider_ids=tuple(self._args.provider_ids),
          )
        self.client.search(self.get_device(), self._args.keyword, params)
        return 0

    async def cmd_input(self) -> int:
        params = [ _parse_name_value(x) for x in self._args.params ]
        self.client.send_input(self.get_device(), params)
        return 0

    async def cmd_type(self) -> int:
        n = self.client.type_text(
            self.get_device(),
            self._args.text,
            policy=TypingPolicy(self._args.policy),
            encoding=self._args.encoding,
          )
        logging.debug(f"Sent {n} keypresses")
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the roku-ecp command-line tool with provided arguments

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(description="Discover and control Roku devices with the External Control Protocol.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('--timeout', type=float, default=DEFAULT_HTTP_TIMEOUT,
                            help=f'''The HTTP request timeout, in seconds. Default: {DEFAULT_HTTP_TIMEOUT}''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')

        def add_device_parser(name: str, description: str, func: Callable[[], Awaitable[int]]) -> argparse.ArgumentParser:
            p = subparsers.add_parser(name, description=description)
            p.add_argument('url', help='The ECP base URL of the device, e.g. "http://192.168.1.162:8060/"')
            p.set_defaults(func=func)
            return p

        # ======================= discover

        parser_discover = subparsers.add_parser('discover', description="Search the local network for Roku devices")
        parser_discover.add_argument('--max-devices', type=int, default=8,
                            help='''The search ends after this many devices are found. Default: 8''')
        parser_discover.add_argument('-i', '--interface', default=None,
                            help='''The network interface to search on. Default: all non-loopback interfaces''')
        parser_discover.add_argument('--wait-time', type=float, default=DISCOVERY_WAIT_TIME,
                            help=f'''The maximum time to wait for responses, in seconds. Default: {DISCOVERY_WAIT_TIME}''')
        parser_discover.add_argument('--info', action='store_true', default=False,
                            help='Query and display the device-info of each device found')
        parser_discover.set_defaults(func=self.cmd_discover)

        # ======================= queries

        add_device_parser('info', "Display device information", self.cmd_info)

        parser_apps = add_device_parser('apps', "List installed apps", self.cmd_apps)
        parser_apps.add_argument('--max-apps', type=int, default=None,
                            help='The maximum number of apps to list. Default: no limit')

        add_device_parser('active-app', "Display the app in the foreground", self.cmd_active_app)

        parser_icon = add_device_parser('icon', "Download an app icon", self.cmd_icon)
        parser_icon.add_argument('app_id', help='The app id, e.g. "12"')
        parser_icon.add_argument('-o', '--output', default=None,
                            help='The file to write the icon to. Default: stdout')

        parser_channels = add_device_parser('channels', "List the tuner channels of a Roku TV", self.cmd_channels)
        parser_channels.add_argument('--max-channels', type=int, default=None,
                            help='The maximum number of channels to list. Default: no limit')

        add_device_parser('active-channel', "Display the active tuner channel of a Roku TV", self.cmd_active_channel)

        # ======================= commands

        parser_key = add_device_parser('key', "Send one or more keypresses", self.cmd_key)
        parser_key.add_argument('keys', nargs='+', help='Key names, e.g. "Home", "Select", "VolumeUp"')

        parser_launch = add_device_parser('launch', "Launch an app", self.cmd_launch)
        parser_launch.add_argument('app_id', help='The app id, e.g. "12"')
        parser_launch.add_argument('--content-id', default='',
                            help='The content id to play')
        parser_launch.add_argument('--media-type', default='none',
                            choices=[ m.name.lower() for m in MediaType ],
                            help='The media type of the content. Default: none')
        parser_launch.add_argument('-p', '--param', dest='params', action='append', default=[],
                            help='A <name>=<value> parameter to pass to the app. May be repeated.')

        parser_launch_channel = add_device_parser('launch-channel', "Tune a Roku TV to a channel", self.cmd_launch_channel)
        parser_launch_channel.add_argument('channel_id', help='The channel id, e.g. "3.1"')

        parser_search = add_device_parser('search', "Search for content", self.cmd_search)
        parser_search.add_argument('keyword', help='The text to search for')
        parser_search.add_argument('--type', default='none',
                            choices=[ t.name.lower() for t in SearchType ],
                            help='The kind of result to search for. Default: none')
        parser_search.add_argument('--include-unavailable', action='store_true', default=False,
                            help='Include results that are not available in the device region')
        parser_search.add_argument('--tms-id', default='',
                            help='The TMS id of the movie or show')
        parser_search.add_argument('--season', type=int, default=0,
                            help='The season of the show')
        parser_search.add_argument('--auto-select', action='store_true', default=False,
                            help='Select the first result')
        parser_search.add_argument('--auto-launch', action='store_true', default=False,
                            help='Launch the first result from the first provider that has it')
        parser_search.add_argument('--provider', dest='provider_ids', action='append', default=[],
                            help='A provider app id. May be repeated, up to 8 times.')

        parser_input = add_device_parser('input', "Send custom input to the active app", self.cmd_input)
        parser_input.add_argument('params', nargs='+', help='<name>=<value> parameters')

        parser_type = add_device_parser('type', "Type text, one literal keypress per character", self.cmd_type)
        parser_type.add_argument('text', help='The text to type')
        parser_type.add_argument('--policy', default=TypingPolicy.LAST_WINS.value,
                            choices=[ p.value for p in TypingPolicy ],
                            help=f'How keypress failures are reported. Default: {TypingPolicy.LAST_WINS.value}')
        parser_type.add_argument('--encoding', default='utf-8',
                            help='The encoding used for literal keys. Default: utf-8')

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            elif isinstance(ex, EcpError):
                rc = abs(int(ex.result_code))
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"roku-ecp: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"roku-ecp: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
