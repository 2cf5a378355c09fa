import collections.abc
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
import re
from typing import Optional

import yaml

from .errors import ParseError
from .registry import BuildAction, TargetRegistry


PARAM_REGEX = re.compile(r"\${\s*([a-zA-Z0-9-_]+)\s*}")

# Single letter flags the command line keeps for itself
RESERVED_FLAGS = ("a", "u", "h", "C")


@dataclass(frozen=True)
class Selector:
    """A command line flag that requests one target."""

    flag: str
    target_id: str
    help: str


def substitute(text: str, values) -> Optional[str]:
    """Expand ${NAME} parameters in text.

    Returns None if any parameter has no value.
    """
    missing = False

    def replace(match):
        nonlocal missing
        name = match.group(1)
        if name not in values:
            missing = True
            return match.group(0)
        return str(values[name])

    expanded = PARAM_REGEX.sub(replace, text)
    if missing:
        return None
    return expanded


class ImageTemplate:
    """An image definition whose build arguments may still hold parameters."""

    def __init__(
        self,
        id,
        *,
        tag,
        build_context,
        build_args=None,
        requires=None,
        flag=None,
        help=None,
    ):
        if not tag:
            raise ParseError(f"Image '{id}' is missing required tag:")
        if not build_context:
            raise ParseError(f"Image '{id}' is missing required build: context:")
        if build_args is None:
            build_args = {}
        if requires is None:
            requires = []

        self.id = id
        self.tag = tag
        self.build_context = build_context
        self.build_args = tuple((str(n), str(v)) for n, v in build_args.items())
        self.requires = tuple(requires)
        self.flag = flag
        self.help = help if help else f"Build {tag} image."

    @property
    def parameters(self):
        parameters = []
        for _, value in self.build_args:
            parameters.extend(PARAM_REGEX.findall(value))
        return tuple(parameters)

    def bind(self, values) -> BuildAction:
        """Return the BuildAction for this image with parameters expanded.

        A build argument that uses a parameter without a value is left out
        so the Dockerfile's own default applies.
        """
        arguments = []
        for name, value in self.build_args:
            value = substitute(value, values)
            if value is not None:
                arguments.append((name, value))
        return BuildAction(
            context=Path(self.build_context),
            tag=self.tag,
            arguments=tuple(arguments),
        )

    @classmethod
    def parse_from(cls, image_id, yaml_dict):
        """Given a parsed yaml dictionary, returns an ImageTemplate instance
        if the yaml dictionary is a valid template for one, else raises."""
        if not isinstance(yaml_dict, collections.abc.Mapping):
            raise ParseError(f"Image '{image_id}' must be a dictionary")

        allowed_things = ["tag", "build", "requires", "flag", "help"]
        for thing in yaml_dict.keys():
            if thing not in allowed_things:
                raise ParseError(f"Image '{image_id}' has unknown field '{thing}'")

        if "build" not in yaml_dict:
            raise ParseError(
                f"Cannot parse image '{image_id}' because it lacks 'build' section"
            )
        if not isinstance(yaml_dict["build"], collections.abc.Mapping):
            raise ParseError(f"Image '{image_id}' 'build' must be a dict")
        allowed_things = ["context", "args"]
        for thing in yaml_dict["build"].keys():
            if thing not in allowed_things:
                raise ParseError(
                    f"Image '{image_id}' has unknown field build:'{thing}'"
                )
        if "context" not in yaml_dict["build"]:
            raise ParseError(
                f"Cannot parse image '{image_id}' because 'build' section lacks 'context'"
            )

        build_args = yaml_dict["build"].get("args")
        if build_args is not None and not isinstance(
            build_args, collections.abc.Mapping
        ):
            raise ParseError(f"Image '{image_id}' 'build: args' must be a dict")

        if "tag" in yaml_dict and not isinstance(yaml_dict["tag"], str):
            raise ParseError(f"Image '{image_id}' 'tag' must be a string")
        if not isinstance(yaml_dict["build"]["context"], str):
            raise ParseError(f"Image '{image_id}' 'build: context' must be a string")
        if "help" in yaml_dict and not isinstance(yaml_dict["help"], str):
            raise ParseError(f"Image '{image_id}' 'help' must be a string")

        requires = yaml_dict.get("requires")
        if requires is not None and not (
            isinstance(requires, list) and all(isinstance(r, str) for r in requires)
        ):
            raise ParseError(f"Image '{image_id}' 'requires' must be a list of ids")

        flag = yaml_dict.get("flag")
        if flag is not None:
            if not (isinstance(flag, str) and len(flag) == 1 and flag.isalpha()):
                raise ParseError(
                    f"Image '{image_id}' 'flag' must be a single letter, not '{flag}'"
                )
            if flag in RESERVED_FLAGS:
                raise ParseError(
                    f"Image '{image_id}' cannot use reserved flag '-{flag}'"
                )

        return cls(
            id=image_id,
            tag=yaml_dict.get("tag"),
            build_context=yaml_dict["build"]["context"],
            build_args=build_args,
            requires=requires,
            flag=flag,
            help=yaml_dict.get("help"),
        )


class Config:

    def __init__(self, images, pull_tags=()):
        self.images = tuple(images)
        self.pull_tags = tuple(pull_tags)

        flags = {}
        for image in self.images:
            if image.flag is None:
                continue
            if image.flag in flags:
                raise ParseError(
                    f"Images '{flags[image.flag]}' and '{image.id}' both use flag '-{image.flag}'"
                )
            flags[image.flag] = image.id

    @classmethod
    def parse_string(cls, string):
        """Parse a config from a string."""
        with StringIO(string) as stream:
            return cls.parse_stream(stream)

    @classmethod
    def parse_stream(cls, stream):
        """Parse a config describing images to build."""
        try:
            yaml_dict = yaml.safe_load(stream)
        except yaml.YAMLError as e:
            raise ParseError(f"Config is not valid YAML: {e}") from e

        if not isinstance(yaml_dict, collections.abc.Mapping):
            raise ParseError("Config must be a dictionary")
        for key in yaml_dict.keys():
            if key not in ("images", "pull"):
                raise ParseError(f"Unknown top level key '{key}'")
        if not isinstance(yaml_dict.get("images"), collections.abc.Mapping):
            raise ParseError("Config needs an 'images' dictionary")

        pull_tags = yaml_dict.get("pull", [])
        if not (isinstance(pull_tags, list) and all(isinstance(t, str) for t in pull_tags)):
            raise ParseError("'pull' must be a list of image tags")

        images = []
        for key, item in yaml_dict["images"].items():
            images.append(ImageTemplate.parse_from(key, item))
        return cls(images, pull_tags)

    def parameters(self):
        params = set()
        for image in self.images:
            params.update(image.parameters)
        return sorted(tuple(params))

    def selectors(self) -> tuple[Selector, ...]:
        return tuple(
            Selector(flag=i.flag, target_id=i.id, help=i.help)
            for i in self.images
            if i.flag is not None
        )

    def bind(self, values) -> TargetRegistry:
        """Return a TargetRegistry with all parameters in values applied."""
        registry = TargetRegistry()
        for image in self.images:
            registry.register(image.id, image.requires, image.bind(values))
        registry.check_acyclic()
        return registry

    def __str__(self):
        images = {}
        for image in self.images:
            yaml_dict = {"tag": image.tag}
            if image.requires:
                yaml_dict["requires"] = list(image.requires)
            if image.flag is not None:
                yaml_dict["flag"] = image.flag
            build_dict = {"context": image.build_context}
            if image.build_args:
                build_dict["args"] = dict(image.build_args)
            yaml_dict["build"] = build_dict
            images[image.id] = yaml_dict
        return yaml.dump(
            {"images": images, "pull": list(self.pull_tags)},
            width=float("inf"),
            sort_keys=False,
        )
