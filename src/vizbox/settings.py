from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.models import Language, Limits


class LanguageProfile(BaseModel):
    image: str
    entry: str
    command: List[str]

    def expand(self, workdir: str, output: str) -> List[str]:
        mapping = {"{workdir}": workdir, "{output}": output, "{entry}": self.entry}
        out = []
        for token in self.command:
            for key, value in mapping.items():
                token = token.replace(key, value)
            out.append(token)
        return out


def _default_profiles() -> Dict[Language, LanguageProfile]:
    return {
        Language.PYTHON: LanguageProfile(
            image="visualization-python",
            entry="script.py",
            command=["python", "{workdir}/{entry}"],
        ),
        Language.R: LanguageProfile(
            image="visualization-r",
            entry="script.R",
            command=["Rscript", "{workdir}/{entry}"],
        ),
    }


class Settings(BaseSettings):
    # ---- workspace ----
    jobs_dir: Path = Path("jobs")
    workdir_mount: str = "/app"
    output_mount: str = "/output"

    # ---- execution ----
    timeout_s: int = 60          # 0 = no deadline
    poll_interval_s: float = 0.2
    max_code_bytes: int = 1048576

    # ---- http ----
    url_prefix: str = "/visualizations"
    cors_origins: List[str] = ["*"]

    # ---- config files ----
    limits_file: Path = Path("conf/limits.yaml")

    languages: Dict[Language, LanguageProfile] = {}
    limits: Dict[str, Any] = {}

    # env prefix VIZBOX_*
    model_config = SettingsConfigDict(env_prefix="VIZBOX_", extra="ignore")

    def profile(self, language: Language) -> LanguageProfile:
        return self.languages.get(language) or _default_profiles()[language]

    def sandbox_limits(self) -> Limits:
        lim = self.limits
        return Limits(
            memory=str(lim.get("memory", "512m")),
            cpus=float(lim.get("cpus", 1.0)),
            pids=int(lim.get("pids", 128)),
            network=bool(lim.get("network", False)),
        )


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    return data if isinstance(data, dict) else {}


def load_settings() -> Settings:
    # 0) base from VIZBOX_* env
    s = Settings()

    # 1) conf/vizbox.yaml (or VIZBOX_CONF)
    data = _read_yaml(Path(os.environ.get("VIZBOX_CONF", "conf/vizbox.yaml")))

    sandbox = data.get("sandbox") or {}
    if not isinstance(sandbox, dict):
        sandbox = {}

    profiles = _default_profiles()
    for name, raw in (data.get("languages") or {}).items():
        lang = Language(name)
        profiles[lang] = profiles[lang].model_copy(update=dict(raw or {}))

    # 2) env wins over YAML for anything explicitly set
    explicit = s.model_fields_set
    update: Dict[str, Any] = {"languages": profiles}
    for key, value in (
        ("jobs_dir", Path(str(data.get("jobs_dir", s.jobs_dir)))),
        ("workdir_mount", sandbox.get("workdir_mount", s.workdir_mount)),
        ("output_mount", sandbox.get("output_mount", s.output_mount)),
        ("timeout_s", int(sandbox.get("timeout_s", s.timeout_s))),
        ("poll_interval_s", float(sandbox.get("poll_interval_s", s.poll_interval_s))),
        ("max_code_bytes", int(data.get("max_code_bytes", s.max_code_bytes))),
        ("url_prefix", data.get("url_prefix", s.url_prefix)),
        ("cors_origins", list(data.get("cors_origins", s.cors_origins))),
    ):
        if key not in explicit:
            update[key] = value
    s = s.model_copy(update=update)

    # 3) conf/limits.yaml (optional)
    s = s.model_copy(update={"limits": _read_yaml(s.limits_file)})
    return s
