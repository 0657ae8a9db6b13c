"""Default scheduler pipeline."""

from importlib import resources
from pathlib import Path

from haulengine.core.pipeline import Pipeline


def create_default_pipeline() -> Pipeline:
    """
    Create the default per-turn pipeline from ``default_pipeline.yml``.

    Order: cleanup unobserved zones, refresh one zone, expire leases,
    discover logistic tasks, match idle carriers. Customise the result with
    :meth:`Pipeline.insert_after`, :meth:`Pipeline.remove` and
    :meth:`Pipeline.replace`, or point ``pipeline_path`` at your own YAML.
    """
    traversable = resources.files("haulengine") / "default_pipeline.yml"
    with resources.as_file(traversable) as yaml_fs_path:
        return Pipeline.from_yaml(Path(yaml_fs_path))
