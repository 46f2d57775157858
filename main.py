import logging
import os
import sys

import hydra
from omegaconf import DictConfig


REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

CONFIG_PATH = os.path.join(REPO_ROOT, "digit_cnn", "conf")
CONFIG_NAME = os.getenv("DIGIT_CNN_CONFIG_NAME", "main")

@hydra.main(config_path=CONFIG_PATH, config_name=CONFIG_NAME, version_base=None)
def main(cfg: DictConfig) -> None:
    from digit_cnn.experiment.experiment_main import experiment_main
    experiment_main(cfg)


if __name__ == "__main__":

    # Initial basic logging setup - console only
    # (full logging will be reconfigured in experiment_main() based on config)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler()]
    )
    logger = logging.getLogger("digitcnn.main")

    import digit_cnn as _
    logger.info("digit_cnn imported successfully")

    main()
