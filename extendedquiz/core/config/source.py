import functools
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource, SettingsError

import extendedquiz.lib.util as util
from extendedquiz.model import DeploymentEnvironment


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def cascade_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """Directories searched for YAML, least specific first"""
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        # we don't have a special directory for local/ that's just root
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
        # we expect init kwargs to have config root and env in them
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except ValueError as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e
            except Exception as e:
                raise SettingsError(f"error getting value for field {field_name!r} from source {self!r}") from e

            if field_value is not None:
                data[field_key] = field_value
        return data


class OverrideSettingsSource(SettingsSource):
    """`-o storage.persistent.database.database=quiz` style overrides, values parsed as YAML"""

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        override = current_state["override"]
        od: dict[str, t.Any] = {}
        for o in override:
            if "=" not in o:
                raise ValueError(f"override must look like key.path=value: {o!r}")
            k, v = [s.strip() for s in o.split("=", 1)]

            target = od
            path = k.split(".")
            for key in path[:-1]:
                if key not in target:
                    target[key] = {}
                target = target[key]
            key = path[-1]
            target[key] = yaml.safe_load(v)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> t.Any:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        skip_keys = {"env", "root", "override"}
        if field_name in skip_keys or field_name not in self.parsed_options:
            raise KeyError(field_name)
        val = current_state.get(field_name)
        if isinstance(val, dict):
            merged = util.deep_update(t.cast(dict[t.Any, t.Any], val), self.parsed_options[field_name])
            return merged, field_name, True
        return self.parsed_options[field_name], field_name, False

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class YAMLCascadingSettingsSource(SettingsSource):
    """
    One YAML file per settings field, `<root>/<field>.yaml`, replaced
    wholesale by `<root>/env.d/<env>/<field>.yaml` when that exists
    """

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        return cascade_paths(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        yamls: list[str] = []
        for path in self.load_paths:
            fn = path / f"{field_name}.yaml"
            if fn.exists():
                yamls.append(fn.read_text(encoding="utf8"))
        if not yamls:
            raise KeyError(field_name)
        return yamls, field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        if not value_is_complex:
            return super().prepare_field_value(field_name, field, value, value_is_complex)

        # for complex values, we expect to be given a list[str] representing
        # the yamls encountered along the load_paths
        if not isinstance(value, list):
            raise ValueError(field_name)
        yamls = t.cast(list[str], value)
        return yaml.safe_load(yamls[-1])


class YAMLSecretsSource(SettingsSource):
    """Plain `secrets.yaml`, the most specific one along the cascade wins"""

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        found = [
            path / "secrets.yaml"
            for path in cascade_paths(current_state["root"], current_state["env"])
            if (path / "secrets.yaml").exists()
        ]
        if not found:
            return {}
        return yaml.safe_load(found[-1].read_text(encoding="utf8")) or {}

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        skip_keys = {"env", "root", "override"}
        # skip_keys first: self.secrets needs current_state["root"]
        if field_name in skip_keys or field_name not in self.secrets:
            raise KeyError(field_name)
        return self.secrets[field_name], field_name, isinstance(self.secrets[field_name], dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value
