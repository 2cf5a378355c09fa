# Copyright 2026 The devimages Authors.
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

import argparse
from dataclasses import dataclass
import os
from pathlib import Path
import re
import sys
from typing import Optional

from .config import Config
from .defaults import DEFAULT_CONFIG
from .docker import Docker
from .errors import DevImagesError, InvalidFlagError, ParseError
from .executor import BuildOptions, ExecutionRequest, Executor
from . import registry


PARAMETER_REGEX = re.compile(r"^([a-zA-Z0-9-_]+)=(.*)$")


class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad flags."""

    def error(self, message):
        raise InvalidFlagError(message)


@dataclass(frozen=True)
class Invocation:
    """Everything the command line asked for, parsed once."""

    requested: tuple[str, ...]
    options: BuildOptions
    pull_all: bool = False
    show_help: bool = False
    config_path: Optional[Path] = None
    directory: Optional[Path] = None
    build_args: tuple[tuple[str, str], ...] = ()
    dry_run: bool = False
    debug: bool = False


def make_parser(config: Config):
    parser = ArgumentParser(
        prog="devimages",
        add_help=False,
        description=(
            "Builds all the images for development. Images a requested image "
            "is based on are built first if they don't exist locally. "
            "Without -u, cached layers are reused."
        ),
    )
    parser.add_argument(
        "-a",
        dest="pull_all",
        action="store_true",
        help="Pull all images needed for development instead of building.",
    )
    for selector in config.selectors():
        parser.add_argument(
            f"-{selector.flag}",
            dest="requested",
            action="append_const",
            const=selector.target_id,
            help=selector.help,
        )
    parser.add_argument(
        "-u",
        dest="no_cache",
        action="store_true",
        help="Signals all image builds to not use cache.",
    )
    parser.add_argument(
        "-h", "--help", dest="show_help", action="store_true", help="This help message."
    )
    parser.add_argument("--config", type=Path, help="YAML file describing the images.")
    parser.add_argument(
        "-C",
        "--directory",
        type=Path,
        help="Directory build contexts are relative to (default: cwd).",
    )
    parser.add_argument(
        "--build-arg",
        dest="build_args",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Value for a ${NAME} parameter; overrides the environment.",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Print commands instead of running them."
    )
    parser.add_argument(
        "--debug", action="store_true", help="Print the image graph before building."
    )
    return parser


def parse_config_path(argv) -> Optional[Path]:
    pre_parser = ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", type=Path)
    args, _ = pre_parser.parse_known_args(argv)
    return args.config


def load_config(config_path: Optional[Path]) -> Config:
    if config_path is None:
        return Config.parse_string(DEFAULT_CONFIG)
    try:
        with open(config_path, "r") as fin:
            return Config.parse_stream(fin)
    except OSError as e:
        raise ParseError(f"Cannot read config '{config_path}': {e}") from e


def parse_build_args(need_parameters, build_args) -> tuple[tuple[str, str], ...]:
    """Raise InvalidFlagError unless every --build-arg is well formed and used."""
    have_parameters = []
    for parametervalue in build_args:
        m = PARAMETER_REGEX.match(parametervalue)
        if m is None:
            raise InvalidFlagError(f"Invalid --build-arg format '{parametervalue}'")
        given_parameter = m.group(1)
        given_value = m.group(2)
        if given_parameter not in need_parameters:
            raise InvalidFlagError(
                f"Given unnecessary --build-arg {given_parameter}={given_value}"
            )
        have_parameters.append((given_parameter, given_value))
    return tuple(have_parameters)


def parse_invocation(parser, config: Config, argv) -> Invocation:
    args = parser.parse_args(argv)
    requested = set(args.requested or [])
    return Invocation(
        # Declaration order, not flag order
        requested=tuple(i.id for i in config.images if i.id in requested),
        options=BuildOptions(no_cache=args.no_cache),
        pull_all=args.pull_all,
        show_help=args.show_help,
        config_path=args.config,
        directory=args.directory,
        build_args=parse_build_args(config.parameters(), args.build_args),
        dry_run=args.dry_run,
        debug=args.debug,
    )


def parameter_values(config: Config, invocation: Invocation, environ=None):
    """Return parameter values from the environment overridden by --build-arg."""
    if environ is None:
        environ = os.environ
    values = {}
    for name in config.parameters():
        if name in environ:
            values[name] = environ[name]
    values.update(invocation.build_args)
    return values


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    try:
        try:
            config_path = parse_config_path(argv)
        except InvalidFlagError as e:
            sys.stderr.write(f"devimages: {e}\n")
            make_parser(load_config(None)).print_help(sys.stderr)
            return 1
        config = load_config(config_path)
        parser = make_parser(config)
        try:
            invocation = parse_invocation(parser, config, argv)
        except InvalidFlagError as e:
            sys.stderr.write(f"devimages: {e}\n")
            parser.print_help(sys.stderr)
            return 1

        # No default action: without a request only usage is printed
        if invocation.show_help or not (invocation.pull_all or invocation.requested):
            parser.print_help()
            return 0

        target_registry = config.bind(parameter_values(config, invocation))
        if invocation.debug:
            print("-----------------")
            print("- Debug printing targets")
            print(target_registry)
            print("-----------------")
            print("- Debug printing target graph")
            print(registry.graph_to_dot(target_registry))
            print("-----------------")

        docker = Docker(context_root=invocation.directory, dry_run=invocation.dry_run)
        executor = Executor(target_registry, docker)

        if invocation.pull_all:
            executor.pull_all(config.pull_tags)
            return 0

        for target_id in invocation.requested:
            executor.run(ExecutionRequest(target_id, invocation.options))
    except DevImagesError as e:
        sys.stderr.write(f"devimages: {e}\n")
        return 1

    return 0
