from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml


class TreeSettings(BaseSettings):
  """Settings of the shadow tree, read from SHADOWTREE_* environment variables."""
  model_config = SettingsConfigDict(env_prefix="SHADOWTREE_")

  base_path: str = "."
  follow_symlinks: bool = False
  max_depth: int = Field(default=64, gt=0)
  progress_interval: int = Field(default=100, gt=0)

  @staticmethod
  def load(path: Path) -> "TreeSettings":
    """Read the settings from a YAML file, environment variables still apply to missing keys."""
    data = yaml.safe_load(Path(path).read_text()) or {}
    if "base_path" in data:
      data["base_path"] = str(Path(data["base_path"]).expanduser())
    return TreeSettings(**data)
