"""
Data Models / Schemas
定义统一的数据结构: 笔记、图片、判断结果、批量结果、动态搜索状态
"""
import base64
import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Author(BaseModel):
    """作者信息"""
    name: str = Field(default="unknown author", description="作者昵称")
    url: Optional[str] = Field(None, description="作者主页")


class ImageAnalysis(BaseModel):
    """VLM 图片分析结果（可选）"""
    has_text: bool = Field(default=False, description="是否包含文字")
    text_content: str = Field(default="", description="提取的文本内容")
    description: str = Field(default="", description="图片描述")
    detected_objects: List[str] = Field(default_factory=list, description="检测到的对象/场景")
    confidence: float = Field(default=0.0, description="置信度 (0-1)")


class ImageAsset(BaseModel):
    """笔记图片 (压缩后的二进制负载 + 元数据)"""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    url: str = Field(..., description="图片来源 URL")
    data: bytes = Field(default=b"", repr=False, description="图片负载 (压缩后)")
    size: int = Field(default=0, description="负载大小(字节)")
    original_size: int = Field(default=0, description="原始大小(字节)")
    compression_ratio: float = Field(default=0.0, description="压缩率(百分比)")
    width: int = Field(default=0, description="宽度(像素)")
    height: int = Field(default=0, description="高度(像素)")
    mime_type: str = Field(default="image/jpeg", description="MIME 类型")
    format: str = Field(default="original", description="输出格式标记")
    local_path: Optional[str] = Field(None, description="本地文件路径(落盘后)")
    analysis: Optional[ImageAnalysis] = Field(None, description="VLM 预分析结果")

    @classmethod
    def from_raw(cls, url: str, data: bytes, mime_type: str = "image/jpeg") -> "ImageAsset":
        """未压缩的原图"""
        return cls(
            url=url,
            data=data,
            size=len(data),
            original_size=len(data),
            mime_type=mime_type,
        )

    @property
    def extension(self) -> str:
        ext = self.mime_type.split("/")[-1].lower() if "/" in self.mime_type else "jpg"
        return "jpg" if ext in ("jpeg", "pjpeg") else ext

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class Note(BaseModel):
    """小红书笔记 (文本 + 互动数据 + 图片)"""
    url: str = Field(..., description="笔记 URL")
    note_id: str = Field(default="", description="笔记 ID")
    title: str = Field(default="", description="标题")
    content: str = Field(default="", description="正文")
    author: Author = Field(default_factory=Author)
    tags: List[str] = Field(default_factory=list, description="标签")
    likes: int = Field(default=0, description="点赞数")
    collects: int = Field(default=0, description="收藏数")
    comments: int = Field(default=0, description="评论数")
    images: List[ImageAsset] = Field(default_factory=list, description="图片列表")
    publish_time: Optional[str] = Field(None, description="发布时间 (站点展示的原始文本)")

    @property
    def has_images(self) -> bool:
        return len(self.images) > 0

    @property
    def content_length(self) -> int:
        return len(self.content or "")


class SearchResultNote(BaseModel):
    """搜索结果笔记条目"""
    url: str
    note_id: str
    title: str = ""
    cover: str = ""
    author: Author = Field(default_factory=Author)
    likes: int = 0


class SearchResult(BaseModel):
    """搜索结果"""
    keyword: str
    results: List[SearchResultNote] = Field(default_factory=list)

    @property
    def result_count(self) -> int:
        return len(self.results)

    @property
    def urls(self) -> List[str]:
        return [item.url for item in self.results]


class VerdictSource(str, Enum):
    """判断结果来源"""
    HEURISTIC = "heuristic"
    LLM = "llm"
    KEYWORD_FALLBACK = "keyword_fallback"
    DEFAULT_THRESHOLD = "default_threshold"


class SufficiencyVerdict(BaseModel):
    """素材是否足够回答问题的判断结果"""
    is_sufficient: bool = False
    reason: str = ""
    missing_aspects: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    source: VerdictSource = VerdictSource.HEURISTIC

    @property
    def from_llm(self) -> bool:
        return self.source in (VerdictSource.LLM, VerdictSource.KEYWORD_FALLBACK)


class FetchFailure(BaseModel):
    """单条笔记获取失败记录"""
    url: str
    error: str


class BatchResult(BaseModel):
    """批量获取结果 (逐条累加, 不丢弃已完成的部分)"""
    success_count: int = 0
    failed_count: int = 0
    notes: List[Note] = Field(default_factory=list)
    errors: List[FetchFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.failed_count

    def record_success(self, note: Note) -> None:
        self.notes.append(note)
        self.success_count += 1

    def record_failure(self, url: str, error: str) -> None:
        self.errors.append(FetchFailure(url=url, error=error))
        self.failed_count += 1


class RetrievalStatus(str, Enum):
    """动态搜索终态"""
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


class RetrievalState(BaseModel):
    """一次动态搜索的状态 (单次调用内有效)"""
    initial_limit: int
    max_limit: int
    increment: int
    current_limit: int
    iteration: int = 0
    max_iterations: int
    last_batch: BatchResult = Field(default_factory=BatchResult)

    @classmethod
    def start(cls, initial_limit: int, max_limit: int, increment: int) -> "RetrievalState":
        max_iterations = math.ceil((max_limit - initial_limit) / increment) + 1
        return cls(
            initial_limit=initial_limit,
            max_limit=max_limit,
            increment=increment,
            current_limit=initial_limit,
            max_iterations=max_iterations,
        )

    @property
    def has_budget(self) -> bool:
        return self.iteration < self.max_iterations

    def widen(self) -> int:
        self.current_limit = min(self.current_limit + self.increment, self.max_limit)
        return self.current_limit


class IterationRecord(BaseModel):
    """单轮搜索记录"""
    iteration: int
    limit: int
    candidate_count: int = 0
    note_count: int = 0
    fast_verdict: Optional[SufficiencyVerdict] = None
    semantic_verdict: Optional[SufficiencyVerdict] = None


class RetrievalOutcome(BaseModel):
    """动态搜索结果"""
    status: RetrievalStatus
    batch: BatchResult = Field(default_factory=BatchResult)
    state: RetrievalState
    history: List[IterationRecord] = Field(default_factory=list)

    @property
    def notes(self) -> List[Note]:
        return self.batch.notes
