import functools
import getpass
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from ansible.parsing.vault import VaultLib, VaultSecret
from keyctl import Key as keyctl
from keyctl import KeyNotExistError
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

from educonnect.model import DeploymentEnvironment

# fields supplied by the caller at boot, never read from files
BootKeys = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def config_dirs(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """Directories searched for config files, lowest precedence first.

    The local environment reads only the root; every other environment layers
    `env.d/<env>/` on top of it.
    """
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
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

            data[field_key] = field_value
        return data


class OverrideSettingsSource(SettingsSource):
    """Applies `-o a.b.c=value` overrides; values are parsed as YAML scalars."""

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]

            target = od
            *parents, leaf = k.split(".")
            for key in parents:
                target = target.setdefault(key, {})
            target[leaf] = yaml.safe_load(v)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name in BootKeys or field_name not in self.parsed_options:
            raise KeyError(field_name)
        # only the overridden leaves are returned; they are deep-merged over
        # the lower-precedence YAML values
        val = self.parsed_options[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class YAMLCascadingSettingsSource(SettingsSource):
    """Reads `<field>.yaml` from each config dir; the most specific file wins."""

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        return config_dirs(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name in BootKeys:
            raise KeyError(field_name)
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

        if not isinstance(value, list):
            raise ValueError(field_name)
        yamls = t.cast(list[str], value)
        return yaml.safe_load(yamls[-1])


class AnsibleVaultSecretsSource(SettingsSource):
    """Reads `secrets.vault.yaml` from the most specific config dir.

    The vault key is cached in the kernel keyring once it has unlocked the
    vault. A missing vault file yields no secrets.
    """

    filename: t.ClassVar[str] = "secrets.vault.yaml"

    @functools.cached_property
    def load_path(self) -> Path:
        current_state = t.cast(CurrentState, self.current_state)
        return config_dirs(current_state["root"], current_state["env"])[-1]

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        env = current_state["env"]
        vp = self.load_path / self.filename

        if not vp.exists():
            return {}

        key_name = f"{env.value}:{self.filename}"
        try:
            store_key = False
            key = keyctl.search(key_name).data
        except KeyNotExistError:
            key = getpass.getpass(f"provide vault key ({key_name}) ")
            store_key = True

        # no vault-id in use; if one is introduced it replaces the None here
        vault = VaultLib(secrets=[(None, VaultSecret(key.encode()))])
        with vp.open() as f:
            content = vault.decrypt(f.read())
        if store_key:
            keyctl.add(key_name, key)
        return yaml.safe_load(content) or {}

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # checked before touching self.secrets, which itself needs root and env
        if field_name in BootKeys:
            raise KeyError(field_name)
        if field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value
