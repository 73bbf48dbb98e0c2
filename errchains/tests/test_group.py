"""
Unit tests for Group execution order and failure propagation.
"""

import logging

import pytest

from errchains import Group, Middleware, MisuseError, Ref, Result, RegistrationError


def ok_step():
    return None


def err_step():
    return ValueError("error")


class RecordingMiddleware(Middleware):
    def __init__(self, tag, log):
        self.tag = tag
        self.log = log

    def execute(self, step, next_callable):
        self.log.append(f"{self.tag}:before:{step.name}")
        result = next_callable()
        self.log.append(f"{self.tag}:after:{step.name}")
        return result


def test_first_failure_is_returned():
    group = Group()
    group.add(err_step)
    group.add(ok_step)
    group.add(ok_step)
    assert not group.execute()

    group = Group()
    group.add(ok_step)
    group.add(err_step)
    group.add(ok_step)
    result = group.execute()
    assert result.is_failure()
    assert isinstance(result.error, ValueError)


def test_steps_after_failure_do_not_run():
    ran = []
    failure = RuntimeError("step 2")

    group = Group()
    group.add(lambda: ran.append(1))
    group.add(lambda: failure)
    group.add(lambda: ran.append(3))
    group.add(lambda: ran.append(4))

    result = group.execute()
    assert result.error is failure
    assert ran == [1]


def test_all_steps_succeed():
    group = Group()
    group.add(ok_step).add(ok_step).add(ok_step)
    result = group.execute()
    assert result.success
    assert result.error is None


def test_empty_group():
    assert Group().execute().success


def test_empty_group_runs_finals():
    ran = []
    group = Group()
    group.final(lambda: ran.append("final"))
    assert group.execute()
    assert ran == ["final"]


def test_defer_order():
    order = []
    group = Group()
    group.defer(lambda: order.append("A"))
    group.add(lambda: order.append("M"))
    group.defer(lambda: order.append("B"))

    assert group.execute()
    assert order == ["M", "B", "A"]


def test_deferred_run_after_all_main_steps():
    order = []
    group = Group()
    group.add(lambda: order.append(1))
    group.defer(lambda: order.append("cleanup"))
    group.add(lambda: order.append(2))
    group.add(lambda: order.append(3))

    assert group.execute()
    assert order == [1, 2, 3, "cleanup"]


def test_deferred_before_failure_run_after_failure_do_not():
    order = []
    group = Group()
    group.defer(lambda: order.append("before-1"))
    group.add(lambda: order.append("M1"))
    group.defer(lambda: order.append("before-2"))
    group.add(err_step)
    group.add(lambda: order.append("M2"))
    group.defer(lambda: order.append("after"))

    assert not group.execute()
    assert order == ["M1", "before-2", "before-1"]


def test_cleanup_failures_are_swallowed(caplog):
    order = []
    group = Group(name="cleanup-test")
    group.defer(lambda: order.append("first"))
    group.defer(lambda: RuntimeError("returned"))
    group.defer(lambda: 1 / 0)
    group.add(ok_step)

    with caplog.at_level(logging.WARNING, logger="errchains.group"):
        result = group.execute()

    assert result.success
    assert order == ["first"]
    messages = [r.getMessage() for r in caplog.records]
    assert len(messages) == 2
    assert all("ignoring failure of cleanup" in m for m in messages)


def test_cleanup_failure_does_not_replace_step_failure():
    failure = KeyError("main")
    group = Group()
    group.defer(lambda: RuntimeError("cleanup"))
    group.add(lambda: failure)
    assert group.execute().error is failure


def test_final_runs_on_failure_in_order():
    group = Group()
    group.add(err_step)
    values = {}
    order = []
    group.final(lambda: (values.__setitem__('a', 100), order.append("F1")))
    group.final(lambda: (values.__setitem__('b', 101), order.append("F2")))

    assert not group.execute()
    assert values == {'a': 100, 'b': 101}
    assert order == ["F1", "F2"]


def test_final_runs_after_deferred():
    order = []
    group = Group()
    group.final(lambda: order.append("final"))
    group.defer(lambda: order.append("deferred"))
    group.add(lambda: order.append("main"))

    group.execute()
    assert order == ["main", "deferred", "final"]


def test_final_runs_on_abnormal_exit():
    ran = []

    def misuse():
        raise MisuseError("programming error")

    group = Group()
    group.add(misuse)
    group.final(lambda: ran.append("final"))

    with pytest.raises(MisuseError):
        group.execute()
    assert ran == ["final"]


def test_failing_final_does_not_skip_other_finals():
    ran = []

    def broken():
        raise RuntimeError("final failed")

    group = Group()
    group.final(broken)
    group.final(lambda: ran.append("second"))

    with pytest.raises(RuntimeError, match="final failed"):
        group.execute()
    assert ran == ["second"]


def test_raised_exception_is_step_failure():
    ran = []

    def explode():
        raise OSError("disk full")

    group = Group()
    group.add(explode)
    group.add(lambda: ran.append("after"))

    result = group.execute()
    assert isinstance(result.error, OSError)
    assert ran == []


def test_result_returning_steps():
    group = Group()
    group.add(lambda: Result.ok())
    group.add(lambda: Result.fail("Intentional failure"))

    result = group.execute()
    assert result.error == "Intentional failure"


def test_execute_is_repeatable():
    counter = {'main': 0, 'final': 0}
    group = Group()
    group.add(lambda: counter.__setitem__('main', counter['main'] + 1))
    group.final(lambda: counter.__setitem__('final', counter['final'] + 1))

    group.execute()
    group.execute()
    assert counter == {'main': 2, 'final': 2}


def test_add_call_fills_after_execute():
    def f(a, b):
        return a, b, None

    group = Group()
    a, b = Ref(int), Ref(str)
    group.add_call(f, 2, "x").fill(a, b)

    assert group.execute()
    assert a.value == 2
    assert b.value == "x"


def test_add_call_error_keeps_values():
    err = ValueError("err")
    group = Group()
    a, b = Ref(int), Ref(str)
    group.add_call(lambda a, b: (a, b, None), 2, "some string").fill(a, b)
    f1a = Ref(int)
    group.add_call(lambda: (1, err)).fill(f1a)

    result = group.execute()
    assert result.error is err
    assert a.value == 2
    assert b.value == "some string"
    assert f1a.value == 1


def test_add_call_rejects_non_callable():
    group = Group()
    with pytest.raises(RegistrationError):
        group.add_call(42)
    assert group.step_count() == 0


def test_add_call_rejects_wrong_arity():
    group = Group()
    with pytest.raises(RegistrationError):
        group.add_call(lambda a, b: None, 1)
    with pytest.raises(RegistrationError):
        group.add_call(lambda a: None, 1, 2)


def test_add_rejects_non_callable():
    group = Group()
    with pytest.raises(RegistrationError):
        group.add("not a function")
    with pytest.raises(RegistrationError):
        group.defer(None)
    with pytest.raises(RegistrationError):
        group.final(3)


def test_middleware_wraps_every_step_lifo():
    log = []
    group = Group()
    group.add(ok_step, name="main")
    group.defer(ok_step, name="cleanup")
    group.use_middleware(RecordingMiddleware("outer", log))
    group.use_middleware(RecordingMiddleware("inner", log))

    assert group.execute()
    assert log == [
        "outer:before:main",
        "inner:before:main",
        "inner:after:main",
        "outer:after:main",
        "outer:before:cleanup",
        "inner:before:cleanup",
        "inner:after:cleanup",
        "outer:after:cleanup",
    ]


def test_counts_and_reset():
    group = Group(name="counted")
    group.add(ok_step).defer(ok_step).final(ok_step)
    group.add_call(ok_step)
    group.use_middleware(RecordingMiddleware("m", []))

    assert group.step_count() == 3
    assert group.final_count() == 1
    assert group.middleware_count() == 1
    assert repr(group) == "Group(name='counted', steps=2, deferred=1, finals=1, middleware=1)"

    group.reset()
    assert group.step_count() == 0
    assert group.final_count() == 0
    assert group.middleware_count() == 0
