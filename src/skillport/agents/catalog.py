"""Catalog of supported agents."""

from __future__ import annotations

from skillport.agents.base import AgentDescriptor


def _agent(
    id: str,
    display_name: str,
    skills_dir: str,
    global_dir: str | tuple[str, ...],
    *markers: str,
    show_in_universal_list: bool = True,
) -> AgentDescriptor:
    global_dirs = (global_dir,) if isinstance(global_dir, str) else global_dir
    return AgentDescriptor(
        id=id,
        display_name=display_name,
        skills_dir=skills_dir,
        global_skills_dirs=global_dirs,
        markers=markers,
        show_in_universal_list=show_in_universal_list,
    )


AGENTS: tuple[AgentDescriptor, ...] = (
    _agent("amp", "Amp", ".agents/skills", "{config}/agents/skills", "{config}/amp"),
    _agent(
        "antigravity",
        "Antigravity",
        ".agent/skills",
        "{home}/.gemini/antigravity/skills",
        "{cwd}/.agent",
        "{home}/.gemini/antigravity",
    ),
    _agent("augment", "Augment", ".augment/skills", "{home}/.augment/skills", "{home}/.augment"),
    _agent("claude-code", "Claude Code", ".claude/skills", "{claude}/skills", "{claude}"),
    _agent(
        "openclaw",
        "OpenClaw",
        "skills",
        ("{home}/.openclaw/skills", "{home}/.clawdbot/skills", "{home}/.moltbot/skills"),
        "{home}/.openclaw",
        "{home}/.clawdbot",
        "{home}/.moltbot",
    ),
    _agent("cline", "Cline", ".cline/skills", "{home}/.cline/skills", "{home}/.cline"),
    _agent(
        "codebuddy",
        "CodeBuddy",
        ".codebuddy/skills",
        "{home}/.codebuddy/skills",
        "{cwd}/.codebuddy",
        "{home}/.codebuddy",
    ),
    _agent("codex", "Codex", ".agents/skills", "{codex}/skills", "{codex}", "/etc/codex"),
    _agent(
        "command-code",
        "Command Code",
        ".commandcode/skills",
        "{home}/.commandcode/skills",
        "{home}/.commandcode",
    ),
    _agent(
        "continue",
        "Continue",
        ".continue/skills",
        "{home}/.continue/skills",
        "{cwd}/.continue",
        "{home}/.continue",
    ),
    _agent("crush", "Crush", ".crush/skills", "{config}/crush/skills", "{config}/crush"),
    _agent("cursor", "Cursor", ".cursor/skills", "{home}/.cursor/skills", "{home}/.cursor"),
    _agent("droid", "Droid", ".factory/skills", "{home}/.factory/skills", "{home}/.factory"),
    _agent("gemini-cli", "Gemini CLI", ".agents/skills", "{home}/.gemini/skills", "{home}/.gemini"),
    _agent(
        "github-copilot",
        "GitHub Copilot",
        ".agents/skills",
        "{home}/.copilot/skills",
        "{cwd}/.github",
        "{home}/.copilot",
    ),
    _agent("goose", "Goose", ".goose/skills", "{config}/goose/skills", "{config}/goose"),
    _agent("iflow-cli", "iFlow CLI", ".iflow/skills", "{home}/.iflow/skills", "{home}/.iflow"),
    _agent("junie", "Junie", ".junie/skills", "{home}/.junie/skills", "{home}/.junie"),
    _agent("kilo", "Kilo Code", ".kilocode/skills", "{home}/.kilocode/skills", "{home}/.kilocode"),
    _agent("kimi-cli", "Kimi Code CLI", ".agents/skills", "{config}/agents/skills", "{home}/.kimi"),
    _agent("kiro-cli", "Kiro CLI", ".kiro/skills", "{home}/.kiro/skills", "{home}/.kiro"),
    _agent("kode", "Kode", ".kode/skills", "{home}/.kode/skills", "{home}/.kode"),
    _agent("mcpjam", "MCPJam", ".mcpjam/skills", "{home}/.mcpjam/skills", "{home}/.mcpjam"),
    _agent("mistral-vibe", "Mistral Vibe", ".vibe/skills", "{home}/.vibe/skills", "{home}/.vibe"),
    _agent("mux", "Mux", ".mux/skills", "{home}/.mux/skills", "{home}/.mux"),
    _agent("neovate", "Neovate", ".neovate/skills", "{home}/.neovate/skills", "{home}/.neovate"),
    _agent(
        "opencode",
        "OpenCode",
        ".agents/skills",
        "{config}/opencode/skills",
        "{config}/opencode",
        "{claude}/skills",
    ),
    _agent(
        "openhands", "OpenHands", ".openhands/skills", "{home}/.openhands/skills", "{home}/.openhands"
    ),
    _agent("pi", "Pi", ".pi/skills", "{home}/.pi/agent/skills", "{home}/.pi/agent"),
    _agent("qoder", "Qoder", ".qoder/skills", "{home}/.qoder/skills", "{home}/.qoder"),
    _agent("qwen-code", "Qwen Code", ".qwen/skills", "{home}/.qwen/skills", "{home}/.qwen"),
    _agent(
        "replit",
        "Replit",
        ".agents/skills",
        "{config}/agents/skills",
        "{cwd}/.agents",
        show_in_universal_list=False,
    ),
    _agent("roo", "Roo Code", ".roo/skills", "{home}/.roo/skills", "{home}/.roo"),
    _agent("trae", "Trae", ".trae/skills", "{home}/.trae/skills", "{home}/.trae"),
    _agent("trae-cn", "Trae CN", ".trae/skills", "{home}/.trae-cn/skills", "{home}/.trae-cn"),
    _agent(
        "windsurf",
        "Windsurf",
        ".windsurf/skills",
        "{home}/.codeium/windsurf/skills",
        "{home}/.codeium/windsurf",
    ),
    _agent("zencoder", "Zencoder", ".zencoder/skills", "{home}/.zencoder/skills", "{home}/.zencoder"),
    _agent("pochi", "Pochi", ".pochi/skills", "{home}/.pochi/skills", "{home}/.pochi"),
    _agent("adal", "AdaL", ".adal/skills", "{home}/.adal/skills", "{home}/.adal"),
)
