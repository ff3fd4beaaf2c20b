"""
EduBASIC - Configuration
========================

Interpreter configuration: canvas size, step limit, random seed and
console behaviour. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options (applied on top by the CLI)

Environment variables (all optional):
    EDUBASIC_CANVAS_WIDTH: Graphics canvas width in pixels
    EDUBASIC_CANVAS_HEIGHT: Graphics canvas height in pixels
    EDUBASIC_MAX_STEPS: Statements executed before a run is stopped
    EDUBASIC_SEED: Seed for RND (integer)
    EDUBASIC_HONOR_SLEEP: "1"/"true"/"yes" to really wait on SLEEP
"""

from dataclasses import dataclass
from typing import Optional
import os

TRUE_WORDS = ("1", "true", "yes", "on")
FALSE_WORDS = ("0", "false", "no", "off")


@dataclass
class InterpreterConfig:
    """
    Configuration for one interpreter session.

    Attributes:
        canvas_width: Graphics canvas width (default: 640)
        canvas_height: Graphics canvas height (default: 480)
        max_steps: Step limit for Interpreter.run() (default: 1,000,000)
        rng_seed: Seed for the random generator (default: None, unseeded)
        echo_console: Echo program output to the terminal (default: True)
        honor_sleep: Block for SLEEP durations during run() (default: False)
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # GRAPHICS
    # ═══════════════════════════════════════════════════════════════════════════

    canvas_width: int = 640
    canvas_height: int = 480

    # ═══════════════════════════════════════════════════════════════════════════
    # EXECUTION
    # ═══════════════════════════════════════════════════════════════════════════

    max_steps: int = 1_000_000
    rng_seed: Optional[int] = None
    echo_console: bool = True
    honor_sleep: bool = False  # off: SLEEP only reports its duration

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "InterpreterConfig":
        """
        Create InterpreterConfig from environment variables.

        Values that do not parse are ignored and the default is kept.

        Returns:
            InterpreterConfig with values from environment variables
        """
        config = cls()

        if width := _env_int("EDUBASIC_CANVAS_WIDTH"):
            if width > 0:
                config.canvas_width = width

        if height := _env_int("EDUBASIC_CANVAS_HEIGHT"):
            if height > 0:
                config.canvas_height = height

        if max_steps := _env_int("EDUBASIC_MAX_STEPS"):
            if max_steps > 0:
                config.max_steps = max_steps

        seed = _env_int("EDUBASIC_SEED")
        if seed is not None:
            config.rng_seed = seed

        if honor := os.environ.get("EDUBASIC_HONOR_SLEEP"):
            if honor.strip().lower() in TRUE_WORDS:
                config.honor_sleep = True
            elif honor.strip().lower() in FALSE_WORDS:
                config.honor_sleep = False

        return config


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None  # Ignore invalid values


# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULT CONFIGURATION INSTANCE
# ═══════════════════════════════════════════════════════════════════════════════

_default_config: Optional[InterpreterConfig] = None


def get_default_config() -> InterpreterConfig:
    """
    Get the default interpreter configuration.

    Creates it from environment variables on first access.
    Can be overridden by calling set_default_config().
    """
    global _default_config
    if _default_config is None:
        _default_config = InterpreterConfig.from_env()
    return _default_config


def set_default_config(config: Optional[InterpreterConfig]) -> None:
    """
    Set the default interpreter configuration.

    Passing None makes the next get_default_config() read the
    environment again.
    """
    global _default_config
    _default_config = config
