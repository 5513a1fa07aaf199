"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class BrowserSettings(BaseSettings):
    """浏览器会话配置"""
    base_url: str = Field(default="https://www.xiaohongshu.com", description="站点首页")
    headless: bool = Field(default=True, description="是否无头模式")
    cookie_path: str = Field(default="~/.mcp/rednote/cookies.json", description="登录 cookies 文件")
    navigation_timeout_ms: int = Field(default=30000, description="页面导航超时(毫秒)")
    warmup_timeout_ms: int = Field(default=15000, description="首页预热超时(毫秒)")
    settle_ms: int = Field(default=2000, description="页面加载后的等待时间(毫秒)")
    image_timeout_ms: int = Field(default=15000, description="单张图片下载超时(毫秒)")

    class Config:
        env_prefix = "BROWSER_"


class RetrievalSettings(BaseSettings):
    """动态搜索配置"""
    initial_limit: int = Field(default=5, description="初始搜索数量")
    max_limit: int = Field(default=30, description="最大搜索数量")
    increment: int = Field(default=5, description="每轮增加的数量")
    min_engagement: int = Field(default=20, description="最低点赞数 (结果太少时自动放宽)")
    sort_mode: str = Field(default="popular", description="排序方式: general, popular, latest")

    class Config:
        env_prefix = "RETRIEVAL_"


class PacingSettings(BaseSettings):
    """批量抓取节奏 (防反爬)"""
    min_delay: float = Field(default=1.0, description="两次请求之间的最小等待(秒)")
    max_delay: float = Field(default=3.0, description="两次请求之间的最大等待(秒)")

    class Config:
        env_prefix = "PACING_"


class CompressionSettings(BaseSettings):
    """图片压缩配置"""
    enabled: bool = Field(default=True, description="是否压缩图片")
    target_bytes: int = Field(default=500 * 1024, description="单张图片目标大小(字节)")
    quality: int = Field(default=65, description="压缩质量 50-95")
    max_width: int = Field(default=1600, description="最大宽度(像素)")
    max_height: int = Field(default=1600, description="最大高度(像素)")
    format: str = Field(default="jpeg", description="输出格式: jpeg, webp")

    class Config:
        env_prefix = "COMPRESSION_"


class StorageSettings(BaseSettings):
    """存储配置"""
    image_dir: str = Field(default="~/.mcp/rednote/images", description="笔记图片保存目录")
    output_dir: str = Field(default="./output", description="文章输出目录")
    persist_images: bool = Field(default=True, description="批量获取后是否落盘图片")

    class Config:
        env_prefix = "STORAGE_"


class LLMSettings(BaseSettings):
    """LLM 配置"""
    provider: str = Field(default="openai", description="LLM提供商: openai, deepseek, zhipu, zhizengzeng")
    model_name: Optional[str] = Field(default=None, description="模型名称(不填则使用默认)")
    vlm_model_name: Optional[str] = Field(default=None, description="图片分析模型(不填则使用默认)")
    base_url: Optional[str] = Field(default=None, description="自定义 OpenAI 兼容端点")
    temperature: float = Field(default=0.3, description="生成温度")
    max_tokens: int = Field(default=2048, description="最大生成token数")
    timeout: float = Field(default=60.0, description="请求超时(秒)")

    # API Keys
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API Key")
    zhipu_api_key: Optional[str] = Field(default=None, description="智谱 API Key")
    zhizengzeng_api_key: Optional[str] = Field(default=None, description="智增增 API Key")

    class Config:
        env_prefix = "LLM_"


class GeneralSettings(BaseSettings):
    """通用设置"""
    log_level: str = Field(default="INFO", description="日志级别")
    log_file: Optional[str] = Field(default=None, description="日志文件名 (写入 logs/ 目录)")


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    pacing: PacingSettings = Field(default_factory=PacingSettings)
    compression: CompressionSettings = Field(default_factory=CompressionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            browser=BrowserSettings(),
            retrieval=RetrievalSettings(),
            pacing=PacingSettings(),
            compression=CompressionSettings(),
            storage=StorageSettings(),
            llm=LLMSettings(),
            general=GeneralSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 便捷访问
def get_browser_settings() -> BrowserSettings:
    return get_settings().browser


def get_retrieval_settings() -> RetrievalSettings:
    return get_settings().retrieval


def get_compression_settings() -> CompressionSettings:
    return get_settings().compression


def get_storage_settings() -> StorageSettings:
    return get_settings().storage


def get_llm_settings() -> LLMSettings:
    return get_settings().llm
