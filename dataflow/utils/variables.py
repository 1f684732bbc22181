import os
from platformdirs import user_config_dir

APP_NAME = "DataFlow"
DATAFLOW_HOME = os.getenv("DATAFLOW_HOME", user_config_dir(APP_NAME))
DEFAULT_CONFIG_FILE = "pipeline-config.json"
CONFIG_ENV_VAR = "DF_CONFIG_FILE"
