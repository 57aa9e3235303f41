from .context import RunContext, StageContext
from .directives import Directive, parse_directive
from .lower import lower_step, lower_steps
from .model import WAIT, Pipeline, Step
from .orchestrator import lower_pipeline
from .pipeline import dump_steps, load_pipeline, parse_pipeline
from .version import build_code_version

__all__ = [
    "RunContext", "StageContext", "Directive", "parse_directive",
    "lower_step", "lower_steps", "WAIT", "Pipeline", "Step",
    "lower_pipeline", "dump_steps", "load_pipeline", "parse_pipeline",
    "build_code_version",
]
