from __future__ import annotations

from pydantic import RootModel, field_validator


class HostTable(RootModel[dict[str, str]]):
    """Canonical host per environment name, e.g. {"production": "example.com"}."""

    @field_validator("root")
    @classmethod
    def _no_blank_hosts(cls, value: dict[str, str]) -> dict[str, str]:
        blank = sorted(env for env, host in value.items() if not host.strip())
        if blank:
            raise ValueError(f"blank host for environment(s): {', '.join(blank)}")
        return value

    def host_for(self, environment: str) -> str | None:
        return self.root.get(environment)
