"""助手配置（AssistantProfile）注册表。

原先两个几乎相同的聊天管理器只在参数上有差别，这里把差别集中为配置值：

- model: 推理服务上的模型名，例如 "llama3"。
- system_prompt / instruction_template: 来自 prompts/tr 下的文本文件。
- options: 生成参数 RequestOptions。
- sanitizer: 回复清洗参数 SanitizerConfig。
- fallback_template: 请求失败时追加到会话里的兜底回复，{cause} 为失败原因。

上层只关心配置名（"llama" / "mistral"），具体取值由这里集中维护。"""

from dataclasses import dataclass
from typing import Mapping

from quake_assistant.domain.models import RequestOptions
from quake_assistant.prompts import load_instruction_template, load_system_prompt
from quake_assistant.text.language_filter import TURKISH_STOPWORDS
from quake_assistant.text.sanitizer import (
    BASIC_PUNCTUATION_RULES,
    FULL_PUNCTUATION_RULES,
    TURKISH_DIACRITIC_REPAIRS,
    SanitizerConfig,
)


@dataclass(frozen=True)
class AssistantProfile:
    """单个助手变体的完整配置。"""

    name: str
    model: str
    system_prompt: str
    instruction_template: str
    options: RequestOptions
    sanitizer: SanitizerConfig
    fallback_template: str
    max_retries: int = 2

    def fallback_message(self, cause: str) -> str:
        return self.fallback_template.format(cause=cause)


LLAMA_PROFILE = AssistantProfile(
    name="llama",
    model="llama3",
    system_prompt=load_system_prompt("llama"),
    instruction_template=load_instruction_template("llama"),
    options=RequestOptions(
        temperature=0.2,
        max_tokens=150,
        top_p=0.8,
        top_k=40,
        frequency_penalty=0.5,
        presence_penalty=0.5,
        stop=("English:", "İngilizce:", "User:", "Kullanıcı:"),
        request_timeout=60.0,
    ),
    sanitizer=SanitizerConfig(
        prefixes=("türkçe:", "turkish:", "yanıt:", "cevap:", "assistant:", "asistan:"),
        min_latin_run=3,
        stopwords=TURKISH_STOPWORDS,
        filler_words=("tabii", "tabi"),
        truncate_threshold=280,
        max_sentences=5,
        max_running_length=250,
        punctuation_rules=FULL_PUNCTUATION_RULES,
        diacritic_repairs=TURKISH_DIACRITIC_REPAIRS,
    ),
    fallback_template=(
        "Üzgünüm, şu anda yanıt veremiyorum: {cause}. "
        "Lütfen internet bağlantınızı kontrol edin veya biraz sonra tekrar deneyin."
    ),
)

MISTRAL_PROFILE = AssistantProfile(
    name="mistral",
    model="mistral",
    system_prompt=load_system_prompt("mistral"),
    instruction_template=load_instruction_template("mistral"),
    options=RequestOptions(
        temperature=0.3,
        max_tokens=120,
        top_p=0.7,
        stop=("English:", "İngilizce:"),
        request_timeout=30.0,
    ),
    sanitizer=SanitizerConfig(
        prefixes=("türkçe:", "turkish:"),
        min_latin_run=4,
        truncate_threshold=200,
        max_sentences=3,
        max_running_length=180,
        punctuation_rules=BASIC_PUNCTUATION_RULES,
    ),
    fallback_template=(
        "Üzgünüm, şu anda yanıt veremiyorum ({cause}). "
        "Lütfen internet bağlantınızı ve Mistral modelinin çalıştığını kontrol edin."
    ),
)


PROFILE_REGISTRY: Mapping[str, AssistantProfile] = {
    "llama": LLAMA_PROFILE,
    "mistral": MISTRAL_PROFILE,
}


def get_profile(name: str) -> AssistantProfile:
    """根据名称获取 AssistantProfile，名称不区分大小写。"""

    key = name.strip().lower()
    for k, profile in PROFILE_REGISTRY.items():
        if k == key:
            return profile
    raise KeyError(f"Unknown assistant profile: {name!r}")
