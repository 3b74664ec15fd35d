from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Prior fitting
    MIN_TRIALS: int = 500
    FIT_METHOD: str = "mle"
    FIT_MAX_ITER: int = 500
    FIT_MAX_SHAPE: float = 1e6  # larger shapes mean the ratios carry no spread

    # Intervals
    CREDIBLE_LEVEL: float = 0.95

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "BATTINGCI_"}


settings = Settings()
