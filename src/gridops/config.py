import configparser

from gridops.folder_utils import get_config_file


# Create global variable to only read the config file once
CONFIG = configparser.ConfigParser()
CONFIG.read(get_config_file())


def get_config() -> configparser.ConfigParser:
    return CONFIG


#  [SETTINGS]
def get_use_parameters() -> bool:
    """Build time-varying data as solver-level parameters so that new
    forecasts only update parameter values instead of rebuilding constraints.
    """
    return CONFIG.getboolean("SETTINGS", "USE_PARAMETERS")


def get_use_forecast_data() -> bool:
    """Use the forecast time series. When False, every device is held at its
    current operating point for the whole horizon.
    """
    return CONFIG.getboolean("SETTINGS", "USE_FORECAST_DATA")


def get_use_warm_start() -> bool:
    """Initialize variables from the current operating point of the system."""
    return CONFIG.getboolean("SETTINGS", "USE_WARM_START")


def get_use_slacks() -> bool:
    """Add penalized power mismatch variables to the balance constraints."""
    return CONFIG.getboolean("SETTINGS", "USE_SLACKS")


#  [SOLVER]
def get_solver() -> str:
    """The default solver. An empty value means no solver is attached."""
    solver = CONFIG.get("SOLVER", "SOLVER", fallback="")
    return solver or None


def get_mip_gap() -> float:
    """MIPGAP significantly affects computation time."""
    return CONFIG.getfloat("SOLVER", "MIPGAP")


def get_timelimit() -> float:
    """Time limit in seconds passed through to the solver."""
    return CONFIG.getfloat("SOLVER", "TIMELIMIT")


def get_to_log() -> bool:
    return CONFIG.getboolean("SOLVER", "LOGTOCONSOLE")


def get_num_threads() -> int:
    return CONFIG.getint("SOLVER", "THREADS")


#  [PENALTY]
def get_slack_penalty() -> float:
    """The cost of a power mismatch in $/MW."""
    return CONFIG.getfloat("PENALTY", "SLACK_PENALTY")
