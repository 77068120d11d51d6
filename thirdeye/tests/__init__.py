"""
ThirdEye Test Suite
===================

Property-based tests for critical invariants.

Philosophy:
- Focus on invariants (properties that must always be true)
- Test critical paths (stabilization, controller lifecycle, audio, MQTT)
- NOT 100% coverage - only key behaviors

Modules:
- test_geometry: IoU, distance classification, proximity
- test_quality: confidence filter and ingestion boundary
- test_sanitizer: bounds filter and dedup
- test_stabilization: matching and smoothing
- test_priority: audio ordering
- test_pipeline_lifecycle: pipeline, mock source, controller
- test_audio: service contract, dispatcher, announcements
- test_config_validation: Pydantic config
- test_mqtt_commands: registry, control/data plane
"""
