# Service layer for the robot console
# - transport:  WebSocket client for the robot link (JSON envelopes)
# - robot_link: wires the transport into a MessageBus for the pages
