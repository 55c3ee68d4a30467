"""
Supervisor Chat Backend

Multi-agent chat service with:
- Supervisor: routes each step to one worker agent
- Weather Reporter: current weather lookups
- News Reporter: news search
- Chatbot: in-character persona that writes the final answer
- Summary Agent: maintains a running synopsis of the conversation
"""
