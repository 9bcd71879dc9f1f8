"""
Support chat app.

This app handles:
- Conversations between a customer and the support admins
- Message sending and transcripts
- Unread bookkeeping for both sides
- WebSocket delivery of message and inbox events

Related apps:
    - authentication: User model and support roles
    - core: BaseModel, ServiceResult / BaseService

WebSocket Support:
    See consumers.py for the consumer, broadcast.py for publishing and
    routing.py for the WebSocket URL.

Usage:
    from chat.services import SupportChatService

    conversation, unread = SupportChatService.open_conversation(customer).data
"""
