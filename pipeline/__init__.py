"""
Pipeline Module
动态搜索编排 - 批量获取 + 两级充分性检查 + 端到端运行
"""
from .batch_executor import BatchAcquisitionExecutor, ContentFetcher, ImageSink
from .retrieval_controller import RetrievalController, SearchProvider, SufficiencyJudge
from .runner import CollectionReport, analyze_outcome_images, build_executor, collect_article

__all__ = [
    "BatchAcquisitionExecutor",
    "ContentFetcher",
    "ImageSink",
    "RetrievalController",
    "SearchProvider",
    "SufficiencyJudge",
    "CollectionReport",
    "analyze_outcome_images",
    "build_executor",
    "collect_article",
]
