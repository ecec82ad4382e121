from wastesort.pipeline.inference import (
    ClassificationPipeline,
    ConfigLoadError,
    DEFAULT_CONFIG,
    load_config,
    save_config,
)

__all__ = ['ClassificationPipeline', 'ConfigLoadError', 'DEFAULT_CONFIG', 'load_config',
           'save_config']
