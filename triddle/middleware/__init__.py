from triddle.middleware.pipeline import STAGE_ORDER, MiddlewarePipeline, Stage, build_pipeline

__all__ = ["STAGE_ORDER", "MiddlewarePipeline", "Stage", "build_pipeline"]
