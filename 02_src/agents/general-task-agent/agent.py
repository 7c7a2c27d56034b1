"""General-purpose agent: prompt in, text out."""

from typing import Any

from agentcore.registry import PromptAgent


class GeneralTaskAgent(PromptAgent):
    system_prompt = (
        "You are a careful general-purpose assistant. Answer the request "
        "directly. When you return structured data, put it in a fenced "
        "```json block."
    )
    collect_json = True

    def get_system_prompt(self, parameters: dict[str, Any]) -> str:
        style = parameters.get("style")
        if style:
            return f"{self.system_prompt}\nAnswer in a {style} style."
        return self.system_prompt


Agent = GeneralTaskAgent
