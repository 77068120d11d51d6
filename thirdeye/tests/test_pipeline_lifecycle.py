"""
Pipeline Lifecycle Tests
========================

Tests del pipeline completo, del source simulado y del DetectionController.

Invariantes testeadas:
1. Pipeline: quality → bounds → dedup → stabilize, en ese orden
2. Escenario end-to-end: una silla persistente se suaviza cada tick
3. MockDetectionSource: spawn solo en múltiplos de spawn_every, seed reproducible
4. Controller: permiso antes de start, guard de intervalo, stop limpia y publica vacío
5. Un tick que termina después de stop() no escribe estado
"""
from unittest.mock import Mock

import pytest

from thirdeye.app.controller import CAMERA_DENIED_MESSAGE, DetectionController, DetectionState
from thirdeye.app.permissions import StaticPermissionProvider
from thirdeye.config.schemas import DetectionSettings
from thirdeye.detection.pipeline import DetectionPipeline
from thirdeye.detection.source import DetectionSource, MockDetectionSource, OBJECT_LABELS


class FakeTicker:
    """Ticker manual: los tests llaman controller.tick() directamente."""

    instances = []

    def __init__(self, period_s, callback):
        self.period_s = period_s
        self.callback = callback
        self.started = False
        self.stopped = False
        FakeTicker.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


class FakeClock:
    def __init__(self, t=100.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds


class ScriptedSource(DetectionSource):
    """Entrega un batch predefinido por generación."""

    def __init__(self, batches):
        self.batches = list(batches)
        self.calls = []
        self.resets = 0

    def next_candidates(self, persisted, generation):
        self.calls.append((tuple(persisted), generation))
        if not self.batches:
            return []
        return self.batches.pop(0)

    def reset(self):
        self.resets += 1


class RaisingPermissions(StaticPermissionProvider):
    def request(self):
        raise PermissionError("device busy")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def build_controller(clock):
    def _build(source=None, granted=True, audio=None, permissions=None):
        return DetectionController(
            source=source or ScriptedSource([]),
            permissions=permissions or StaticPermissionProvider(granted=granted),
            settings=DetectionSettings(),
            audio=audio,
            clock=clock,
            ticker_factory=FakeTicker,
        )
    return _build


@pytest.mark.unit
@pytest.mark.pipeline
class TestDetectionPipeline:
    """Tests de DetectionPipeline.run()"""

    def test_stage_order_and_counts(self, raw_record):
        raw = [
            raw_record(label="chair", x=0.2, y=0.2, confidence=0.9),
            raw_record(label="chair", x=0.22, y=0.21, confidence=0.95),  # duplicado
            raw_record(label="cup", x=0.5, y=0.5, confidence=0.5),       # baja confianza
            raw_record(label="door", x=0.97, y=0.5, confidence=0.9),     # fuera de frame
            {"label": "book", "confidence": 0.9},                        # malformado
        ]

        result = DetectionPipeline().run(raw, [])

        assert result.raw_count == 5
        assert result.ingested_count == 3
        assert result.sanitized_count == 1
        assert result.matched_count == 0
        assert [o.label for o in result.objects] == ["chair"]
        assert result.objects[0].confidence == 0.9

    def test_empty_input(self):
        result = DetectionPipeline().run([], [])
        assert result.objects == ()

    def test_threshold_disabled(self, raw_record):
        result = DetectionPipeline(confidence_threshold=None).run([raw_record(confidence=0.1)], [])
        assert len(result.objects) == 1

    def test_persistent_chair_scenario(self, raw_record):
        """
        Escenario: silla estática con jitter leve durante 5 ticks.

        - ids distintos cada tick (identidad no estable)
        - matched en cada tick desde el segundo
        - confidence suavizada dentro del rango observado
        """
        pipeline = DetectionPipeline()
        observations = [
            (0.300, 0.400, 0.90),
            (0.305, 0.398, 0.85),
            (0.298, 0.402, 0.95),
            (0.303, 0.401, 0.88),
            (0.301, 0.399, 0.92),
        ]
        previous = ()
        ids = []

        for tick, (x, y, confidence) in enumerate(observations):
            record = raw_record(label="chair", x=x, y=y, width=0.2, height=0.25, confidence=confidence)
            record["id"] = f"chair-{tick}"
            result = pipeline.run([record], previous)

            assert len(result.objects) == 1
            obj = result.objects[0]
            assert result.matched_count == (0 if tick == 0 else 1)
            assert 0.85 <= obj.confidence <= 0.95
            ids.append(obj.id)
            previous = result.objects

        assert len(set(ids)) == len(observations)


@pytest.mark.unit
@pytest.mark.pipeline
class TestMockDetectionSource:
    """Tests de MockDetectionSource"""

    def test_no_spawn_outside_spawn_generations(self):
        source = MockDetectionSource(spawn_every=3, max_new_objects=2, dropout_rate=0.0, seed=1)
        for generation in (1, 2, 4, 5):
            assert source.next_candidates([], generation) == []

    def test_spawn_bounded(self):
        source = MockDetectionSource(spawn_every=1, max_new_objects=2, dropout_rate=0.0, seed=7)
        for generation in range(1, 30):
            candidates = source.next_candidates([], generation)
            assert len(candidates) <= 2
            assert all(c["label"] in OBJECT_LABELS for c in candidates)

    def test_spawned_records_ingestible(self):
        source = MockDetectionSource(spawn_every=1, max_new_objects=2, dropout_rate=0.0, seed=3)
        records = [r for g in range(1, 20) for r in source.next_candidates([], g)]

        result = DetectionPipeline(confidence_threshold=None).run(records, [])

        assert result.ingested_count == len(records)

    def test_move_keeps_count_and_frame(self, make_object):
        source = MockDetectionSource(spawn_every=1000, dropout_rate=0.0, jitter=0.2, seed=5)
        persisted = [make_object(x=0.0, y=0.0), make_object(label="door", x=0.79, y=0.79)]

        moved = source.next_candidates(persisted, 1)

        assert [o.label for o in moved] == ["chair", "door"]
        for before, after in zip(persisted, moved):
            box = after.bounding_box
            assert after.id != before.id
            assert 0.0 <= box.x <= 1.0 - box.width
            assert 0.0 <= box.y <= 1.0 - box.height
            assert box.width == before.bounding_box.width

    def test_dropout_removes_everything_at_high_rate(self, make_object):
        source = MockDetectionSource(spawn_every=1000, dropout_rate=0.999999, seed=2)
        assert source.next_candidates([make_object()] * 5, 1) == []

    def test_seed_reproducible_after_reset(self):
        source = MockDetectionSource(spawn_every=1, dropout_rate=0.0, seed=11)
        first = [[r["label"] for r in source.next_candidates([], g)] for g in range(1, 10)]

        source.reset()
        second = [[r["label"] for r in source.next_candidates([], g)] for g in range(1, 10)]

        assert first == second


@pytest.mark.unit
@pytest.mark.pipeline
class TestCameraPermission:
    """Tests de request_camera_permission()"""

    def test_granted(self, build_controller):
        controller = build_controller(granted=True)

        assert controller.request_camera_permission() is True
        assert controller.has_camera_permission is True
        assert controller.is_camera_ready is True
        assert controller.error is None
        assert controller.is_loading is False

    def test_denied(self, build_controller):
        controller = build_controller(granted=False)

        assert controller.request_camera_permission() is False
        assert controller.has_camera_permission is False
        assert controller.is_camera_ready is False
        assert controller.error == CAMERA_DENIED_MESSAGE

    def test_provider_exception_never_propagates(self, build_controller):
        controller = build_controller(permissions=RaisingPermissions())

        assert controller.request_camera_permission() is False
        assert controller.error == CAMERA_DENIED_MESSAGE
        assert controller.is_loading is False

    def test_start_without_permission_requests_and_stays_idle(self, build_controller):
        """
        Invariante: start() sin permiso solicita permiso y NO inicia.
        """
        permissions = StaticPermissionProvider(granted=True)
        controller = build_controller(permissions=permissions)

        assert controller.start() is False
        assert controller.state is DetectionState.IDLE
        assert permissions.requests == 1
        assert controller.has_camera_permission is True

        assert controller.start() is True
        assert controller.state is DetectionState.RUNNING


@pytest.mark.unit
@pytest.mark.pipeline
class TestDetectionController:
    """Tests del lifecycle y del tick"""

    def _started(self, controller):
        controller.request_camera_permission()
        assert controller.start()
        return controller

    def test_start_creates_ticker_with_period(self, build_controller):
        controller = self._started(build_controller())

        ticker = FakeTicker.instances[-1]
        assert ticker.started
        assert ticker.period_s == pytest.approx(0.3)
        assert controller.session_id == 1

    def test_tick_when_idle_is_noop(self, build_controller):
        controller = build_controller()
        assert controller.tick() is False
        assert controller.generation_count == 0

    def test_tick_publishes_stabilized_set(self, build_controller, raw_record):
        source = ScriptedSource([
            [raw_record(label="chair", confidence=0.9)],
            [raw_record(label="chair", x=0.11, confidence=0.8)],
        ])
        controller = self._started(build_controller(source=source))
        published = []
        controller.subscribe(published.append)

        assert controller.tick()
        controller._clock.advance(0.3)
        assert controller.tick()

        assert controller.generation_count == 2
        assert len(published) == 2
        assert published[1][0].confidence == pytest.approx(0.7 * 0.8 + 0.3 * 0.9)
        assert controller.detected_objects == published[1]
        # el source recibe el set persistido del tick anterior
        assert source.calls[1] == (published[0], 2)

    def test_interval_guard(self, build_controller, clock):
        """
        Invariante: Ticks a menos de 200 ms del último aceptado se descartan.
        """
        controller = self._started(build_controller())

        assert controller.tick() is True
        clock.advance(0.1)
        assert controller.tick() is False
        clock.advance(0.15)
        assert controller.tick() is True

        stats = controller.get_stats()
        assert stats["ticks_accepted"] == 2
        assert stats["ticks_rejected"] == 1
        assert stats["generation_count"] == 2

    def test_stop_clears_state_and_publishes_empty(self, build_controller, raw_record):
        source = ScriptedSource([[raw_record()]])
        controller = self._started(build_controller(source=source))
        published = []
        controller.subscribe(published.append)
        controller.tick()
        ticker = FakeTicker.instances[-1]

        controller.stop()

        assert ticker.stopped
        assert controller.state is DetectionState.IDLE
        assert controller.detected_objects == ()
        assert published[-1] == ()
        assert controller.tick() is False

    def test_restart_resets_session(self, build_controller, raw_record, clock):
        source = ScriptedSource([[raw_record()], [raw_record()]])
        controller = self._started(build_controller(source=source))
        controller.tick()
        controller.stop()

        controller.start()
        clock.advance(0.01)

        assert controller.generation_count == 0
        assert controller.session_id == 3
        assert source.resets == 2
        assert controller.tick() is True

    def test_stop_during_tick_discards_result(self, build_controller, raw_record):
        """
        Invariante: Un tick en vuelo cuando llega stop() no escribe estado.
        """
        holder = {}

        class StoppingSource(ScriptedSource):
            def next_candidates(self, persisted, generation):
                holder["controller"].stop()
                return [raw_record()]

        controller = self._started(build_controller(source=StoppingSource([])))
        holder["controller"] = controller
        published = []
        controller.subscribe(published.append)

        assert controller.tick() is False
        assert controller.detected_objects == ()
        assert published == [()]

    def test_listener_error_does_not_break_tick(self, build_controller, raw_record):
        source = ScriptedSource([[raw_record()]])
        controller = self._started(build_controller(source=source))
        received = []

        def broken(objects):
            raise RuntimeError("listener failed")

        controller.subscribe(broken)
        controller.subscribe(received.append)

        assert controller.tick() is True
        assert len(received) == 1

    def test_unsubscribe(self, build_controller, raw_record):
        controller = self._started(build_controller(source=ScriptedSource([[raw_record()]])))
        received = []
        unsubscribe = controller.subscribe(received.append)
        unsubscribe()

        controller.tick()

        assert received == []

    def test_persistent_chair_through_controller(self, build_controller, raw_record, clock):
        """
        Escenario: silla A en {0.1, 0.1, 0.2, 0.2} durante 5 ticks del controller.

        - ids distintos cada tick
        - matched cada tick: confidence = 0.7 * nueva + 0.3 * anterior
        - confidence publicada dentro de [0.85, 0.95]
        """
        observations = [
            (0.100, 0.100, 0.90),
            (0.108, 0.095, 0.85),
            (0.092, 0.104, 0.95),
            (0.105, 0.110, 0.88),
            (0.097, 0.091, 0.93),
        ]
        batches = []
        for tick, (x, y, confidence) in enumerate(observations):
            record = raw_record(label="chair", x=x, y=y, width=0.2, height=0.2, confidence=confidence)
            record["id"] = f"chair-{tick}"
            batches.append([record])
        controller = self._started(build_controller(source=ScriptedSource(batches)))
        published = []
        controller.subscribe(published.append)

        for _ in observations:
            assert controller.tick() is True
            clock.advance(0.3)

        assert [len(objects) for objects in published] == [1] * 5
        chairs = [objects[0] for objects in published]
        assert [c.id for c in chairs] == [f"chair-{tick}" for tick in range(5)]
        assert chairs[0].confidence == 0.9
        for tick in range(1, 5):
            expected = 0.7 * observations[tick][2] + 0.3 * chairs[tick - 1].confidence
            assert chairs[tick].confidence == pytest.approx(expected)
        assert all(0.85 <= c.confidence <= 0.95 for c in chairs)

    def test_audio_follows_lifecycle(self, build_controller, raw_record):
        audio = Mock()
        source = ScriptedSource([[raw_record()]])
        controller = self._started(build_controller(source=source, audio=audio))

        audio.start_session.assert_called_once()
        controller.tick()
        audio.dispatch.assert_called_once_with(controller.detected_objects)

        controller.stop()
        audio.stop_session.assert_called_once()


@pytest.mark.integration
@pytest.mark.pipeline
class TestPeriodicTicker:
    """Tests del ticker real (threading)"""

    def test_ticks_and_stops(self):
        from threading import Event
        from thirdeye.app.ticker import PeriodicTicker

        fired = Event()
        count = []

        def callback():
            count.append(1)
            if len(count) >= 3:
                fired.set()

        ticker = PeriodicTicker(0.01, callback)
        ticker.start()
        assert fired.wait(timeout=2.0)
        ticker.stop()

        assert not ticker.is_running
        seen = len(count)
        fired.clear()
        assert not fired.wait(timeout=0.05)
        assert len(count) == seen

    def test_callback_errors_do_not_kill_thread(self):
        from threading import Event
        from thirdeye.app.ticker import PeriodicTicker

        done = Event()
        calls = []

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise ValueError("boom")
            done.set()

        ticker = PeriodicTicker(0.01, callback)
        ticker.start()
        assert done.wait(timeout=2.0)
        ticker.stop()
