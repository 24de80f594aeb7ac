from dataclasses import dataclass, field
from typing import Any, Union

import yaml

from ..errors import MalformedDescriptor

DESCRIPTOR_FILENAME = ".mbt.yml"


@dataclass(frozen=True)
class BuildCommand:
    cmd: str
    args: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, step: str, data: Any, raw: Any) -> "BuildCommand":
        if not isinstance(data, dict) or not isinstance(raw, dict):
            raise MalformedDescriptor(f"Build step '{step}' must be a mapping")
        typed_args = data.get("args")
        if typed_args is None:
            return cls(cmd=_text(data.get("cmd"), raw.get("cmd"), f"Build step '{step}' cmd"))
        raw_args = raw.get("args")
        if not isinstance(typed_args, list) or not isinstance(raw_args, list):
            raise MalformedDescriptor(f"Build step '{step}' args must be a list")
        return cls(
            cmd=_text(data.get("cmd"), raw.get("cmd"), f"Build step '{step}' cmd"),
            args=tuple(
                _text(arg, raw_arg, f"Build step '{step}' argument")
                for arg, raw_arg in zip(typed_args, raw_args)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"cmd": self.cmd, "args": list(self.args)}


@dataclass
class DescriptorSpec:
    version: str = ""
    name: str = ""
    build: dict[str, BuildCommand] = field(default_factory=dict)
    properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any], raw: dict[str, Any]) -> "DescriptorSpec":
        build = data.get("build")
        if build is None:
            build = {}
        if not isinstance(build, dict):
            raise MalformedDescriptor("'build' must be a mapping")
        raw_build = raw.get("build") if build else {}
        if not isinstance(raw_build, dict) or len(raw_build) != len(build):
            raise MalformedDescriptor("'build' must be a mapping with unique step names")

        properties = data.get("properties")
        if properties is None:
            properties = {}
        if not isinstance(properties, dict):
            raise MalformedDescriptor("'properties' must be a mapping")
        for key in properties:
            if not isinstance(key, str):
                raise MalformedDescriptor(f"Property key {key!r} must be a string")

        return cls(
            version=_text(data.get("version"), raw.get("version"), "'version'"),
            name=_text(data.get("name"), raw.get("name"), "'name'"),
            build={
                step: BuildCommand.from_dict(step, cmd, raw_cmd)
                for (step, raw_cmd), cmd in zip(raw_build.items(), build.values())
            },
            properties=dict(properties),
        )


def _text(value: Any, raw: Any, what: str) -> str:
    # string fields keep the document's text, not the YAML 1.1 typed value
    if value is None:
        return ""
    if isinstance(value, (dict, list)) or not isinstance(raw, str):
        raise MalformedDescriptor(f"{what} must be a scalar value")
    return raw


def parse_descriptor(source: Union[bytes, str]) -> DescriptorSpec:
    """
    Parse the contents of a ``.mbt.yml`` descriptor.

    ``version``, ``name``, build commands and their arguments are read as the
    text written in the file (``1.10`` stays ``"1.10"``). ``properties`` keep
    their YAML types. Unknown keys are ignored, and missing ``build`` and
    ``properties`` sections come back as empty mappings.
    """
    try:
        data = yaml.safe_load(source)
        raw = yaml.load(source, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise MalformedDescriptor(f"Invalid YAML: {exc}") from exc

    if data is None:
        data = {}
        raw = {}

    if not isinstance(data, dict) or not isinstance(raw, dict):
        raise MalformedDescriptor("Descriptor must be a YAML mapping")

    return DescriptorSpec.from_dict(data, raw)
