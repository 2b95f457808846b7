from storefront.app.idle import IdleAttentionTimer
from storefront.app.state import InteractionContext


def make_timer(clock, context_ref, fired):
    async def on_idle():
        fired.append(clock.monotonic_ms())

    return IdleAttentionTimer(
        quiet_period_ms=10_000,
        context=lambda: context_ref[0],
        on_idle=on_idle,
        clock=clock,
    )


async def test_fires_after_quiet_period(clock):
    fired = []
    timer = make_timer(clock, [InteractionContext()], fired)
    timer.start()
    await clock.advance(9_999)
    assert fired == []
    await clock.advance(1)
    assert fired == [10_000]
    await timer.stop()


async def test_activity_before_deadline_pushes_it_back(clock):
    fired = []
    timer = make_timer(clock, [InteractionContext()], fired)
    timer.start()
    await clock.advance(9_999)
    timer.on_activity()
    await clock.advance(1)
    assert fired == []
    await clock.advance(9_998)
    assert fired == []
    await clock.advance(1)
    assert fired == [19_999]
    await timer.stop()


async def test_repeats_after_firing(clock):
    fired = []
    timer = make_timer(clock, [InteractionContext()], fired)
    timer.start()
    await clock.advance(30_000)
    assert fired == [10_000, 20_000, 30_000]
    assert timer.fired_count == 3
    await timer.stop()


async def test_suppressed_fire_is_swallowed_and_rearms(clock):
    fired = []
    context = [InteractionContext(detail_open=True)]
    timer = make_timer(clock, context, fired)
    timer.start()
    await clock.advance(10_000)
    assert fired == []
    context[0] = InteractionContext(cart_open=True)
    await clock.advance(10_000)
    assert fired == []
    context[0] = InteractionContext()
    await clock.advance(10_000)
    assert fired == [30_000]
    await timer.stop()


async def test_session_active_suppresses(clock):
    fired = []
    timer = make_timer(clock, [InteractionContext(session_active=True)], fired)
    timer.start()
    await clock.advance(50_000)
    assert fired == []
    assert timer.running
    await timer.stop()


async def test_stop_cancels_pending_countdown(clock):
    fired = []
    timer = make_timer(clock, [InteractionContext()], fired)
    timer.start()
    await clock.advance(5_000)
    await timer.stop()
    assert not timer.running
    await clock.advance(20_000)
    assert fired == []
    assert clock.pending == 0


async def test_activity_before_start_does_not_arm(clock):
    fired = []
    timer = make_timer(clock, [InteractionContext()], fired)
    timer.on_activity()
    await clock.advance(20_000)
    assert fired == []
    assert not timer.running
