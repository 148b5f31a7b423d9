"""
Ride Simulator

Publishes rider lifecycle events to a RabbitMQ topic exchange and injects
errors into a fraction of them so downstream consumers can be tested.
"""
