"""Deployment agent: GitHub repository setup and Vercel deployment."""

import asyncio
import os
import re
from typing import Any

from agentcore.llm import Tool, ToolSet
from agentcore.registry import PromptAgent
from agentcore.session import PatternExtractor

COMMAND_TIMEOUT = 600
OUTPUT_LIMIT = 8000

SYSTEM_PROMPT = """You deploy web projects.

Workflow, in order:
1. prime - check that gh and vercel are installed and authenticated.
2. detect-project - decide whether the project already has a repository.
3. setup-github - create or clone the repository.
4. setup-vercel - link the project to Vercel.
5. build-deploy - install dependencies and deploy to production.
6. monitor-fix - check the live URL and fix build errors.

Call report_progress with the milestone name as soon as each step is done.
Run shell commands with run_command. Finish with the repository URL and the
deployment URL."""


async def run_command(tool_input: dict[str, Any]) -> str:
    command = tool_input.get("command")
    if not command:
        raise ValueError("command is required")

    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        cwd=tool_input.get("cwd") or os.getcwd(),
    )
    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=COMMAND_TIMEOUT)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise RuntimeError(f"command timed out after {COMMAND_TIMEOUT}s")

    output = stdout.decode("utf-8", errors="replace")[-OUTPUT_LIMIT:]
    if proc.returncode != 0:
        raise RuntimeError(f"exit code {proc.returncode}\n{output}")
    return output or "(no output)"


class DeploymentAgent(PromptAgent):
    system_prompt = SYSTEM_PROMPT
    milestones = (
        "prime",
        "detect-project",
        "setup-github",
        "setup-vercel",
        "build-deploy",
        "monitor-fix",
    )
    milestone_patterns = {
        "prime": ("gh --version", "vercel --version"),
        "detect-project": ("gh repo view", "git ls-remote"),
        "setup-github": ("gh repo create", "git clone"),
        "setup-vercel": ("vercel link", "vercel project"),
        "build-deploy": ("npm install", "vercel --prod"),
        "monitor-fix": ("vercel.app",),
    }

    def validate_input(self, parameters: dict[str, Any]) -> str | None:
        project = parameters.get("projectName")
        if project is not None and not re.fullmatch(r"[A-Za-z0-9._-]+", str(project)):
            return f"projectName contains invalid characters: {project!r}"
        return None

    def build_prompt(self, context) -> str:
        project = context.parameters.get("projectName")
        if project:
            return f"{context.prompt}\n\nProject name: {project}"
        return context.prompt

    def get_tools(self, context) -> ToolSet:
        return ToolSet(
            [
                Tool(
                    name="run_command",
                    description="Run a shell command and return its combined output.",
                    handler=run_command,
                    input_schema={
                        "type": "object",
                        "properties": {
                            "command": {"type": "string"},
                            "cwd": {"type": "string"},
                        },
                        "required": ["command"],
                    },
                )
            ]
        )

    def extractors(self):
        return (
            PatternExtractor.compile("deploymentUrl", r"https://[a-z0-9-]+\.vercel\.app", re.IGNORECASE),
            PatternExtractor.compile("repositoryUrl", r"https://github\.com/[A-Za-z0-9_-]+/[A-Za-z0-9_.-]+"),
        )


Agent = DeploymentAgent
