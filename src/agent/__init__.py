"""
agent - Conversational agent orchestration layer.

Contains the Agent (LLM + tool-calling loop), the AgentRegistry, prompts,
per-turn conversation memory and the local tools agents always carry.
Depends on domain/ and application/. Never imports from infrastructure/.
"""
