"""app.integrations — External collaborator gateway modules.

Services never send messages or render documents themselves; they hand a
finished payload to a gateway in this package and get a typed result back.

Current gateways:
  messaging_gateway.MessagingGateway — staff notifications (wa.me link or webhook relay)
  document_gateway.DocumentGateway   — operation PDFs (task order, plan, result report)
"""
