from visit_analysis.prompts.prompt_templates import build_analysis_prompt
from visit_analysis.prompts.system_prompts import ANALYST_SYSTEM_PROMPT

__all__ = ["build_analysis_prompt", "ANALYST_SYSTEM_PROMPT"]
