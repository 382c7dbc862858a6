import threading
from pathlib import Path

from jstepper import Interpreter, Surface
from jstepper.bridge import ElementHandle, NodeListHandle
from jstepper.surface import Element

PAGE = (
    '<h1 id="title">Hello</h1>'
    '<ul id="list"><li class="item">a</li><li class="item done">b</li></ul>'
    '<input id="age" value="41">'
    '<button id="go">Go</button>'
)


def make(src, answers=()):
    surface = Surface.from_html(PAGE, answers=answers)
    return Interpreter(src, surface), surface


def score_tracker():
    root = Path(__file__).resolve().parent.parent / 'examples'
    surface = Surface.from_html((root / 'score.html').read_text(encoding='utf-8'), answers=['Ada'])
    return Interpreter((root / 'score_tracker.js').read_text(encoding='utf-8'), surface), surface


def test_get_element_by_id_wraps_the_element():
    interp, surface = make("const t = document.getElementById('title')\nconsole.log(t.textContent)")
    interp.run()
    handle = interp.state.globals.values['t']
    assert isinstance(handle, ElementHandle)
    assert handle.element is surface.document.getElementById('title')
    assert interp.state.globals.meta['t'].label == 'DOM element'
    assert interp.state.logs == [
        'Selected element with id: title',
        'Declared t = {}',
        'Hello',
    ]


def test_missing_element_logs_and_returns_null():
    interp, _ = make("const nope = document.getElementById('nope')")
    interp.run()
    assert interp.state.globals.values['nope'] is None
    assert interp.state.logs == ['Element with id nope not found', 'Declared nope = null']


def test_writes_go_through_to_the_live_element():
    src = "const t = document.getElementById('title')\nt.textContent = 'Bye'\nt.className = 'big'"
    interp, surface = make(src)
    interp.run()
    title = surface.document.getElementById('title')
    assert title.textContent == 'Bye'
    assert title.className == 'big'
    assert 'Set textContent = "Bye"' in interp.state.logs


def test_writing_to_a_missing_element_is_a_type_error():
    interp, _ = make("const el = document.getElementById('missing')\nel.textContent = 'x'")
    interp.run()
    assert interp.state.error == "TypeError: Cannot set properties of null (setting 'textContent')"


def test_query_selector_all_returns_a_list_handle():
    src = "const items = document.querySelectorAll('.item')\nconsole.log(items.length, items[1].textContent)"
    interp, _ = make(src)
    interp.run()
    items = interp.state.globals.values['items']
    assert isinstance(items, NodeListHandle)
    assert interp.state.globals.meta['items'].label == 'DOM element list (2 items)'
    assert interp.state.logs[0] == 'Selected 2 elements matching: .item'
    assert interp.state.logs[-1] == '2 b'


def test_query_selector_by_tag():
    interp, _ = make("const b = document.querySelector('button')\nconsole.log(b.id)")
    interp.run()
    assert interp.state.logs == ['Selected element matching: button', 'Declared b = {}', 'go']


def test_form_value_and_inner_html():
    src = (
        "const age = document.getElementById('age')\n"
        "const next = parseInt(age.value) + 1\n"
        "document.getElementById('list').innerHTML = '<li>x</li><li>y</li><li>z</li>'\n"
        "console.log(document.querySelectorAll('li').length)\n"
    )
    interp, _ = make(src)
    interp.run()
    assert interp.state.globals.values['next'] == 42
    assert interp.state.logs[-1] == '3'


def test_listener_registration_pushes_no_frame():
    src = "const go = document.getElementById('go')\ngo.addEventListener('click', function () {\n  clicks = 1\n})"
    interp, surface = make(src)
    interp.step()
    before = len(interp.state.stack)
    interp.step()
    assert len(interp.state.stack) == before == 1
    assert interp.state.logs[-1] == 'Added click listener'
    assert surface.document.getElementById('go').listener_count('click') == 1


def test_firing_the_event_pushes_exactly_one_frame():
    src = "const go = document.getElementById('go')\ngo.addEventListener('click', function (event) {\n  clicked = event.type\n})"
    interp, surface = make(src)
    interp.run()
    assert interp.state.finished
    notified = []
    interp.set_on_step(notified.append)

    surface.click('go')

    state = interp.state
    assert len(state.stack) == 2
    assert state.current_frame.is_function
    assert not state.finished
    assert notified == [state]
    assert state.logs[-2:] == ['Triggered click event', 'Calling (anonymous function)([object Object])']
    interp.run()
    assert state.globals.values['clicked'] == 'click'
    assert len(state.stack) == 1


def test_each_click_runs_the_handler_again():
    interp, surface = score_tracker()
    interp.run()
    for _ in range(3):
        surface.click('add')
        interp.run()
    assert surface.document.getElementById('score').textContent == '3'
    assert interp.state.logs.count('Triggered click event') == 3


def test_events_after_an_error_are_ignored():
    src = "document.getElementById('go').addEventListener('click', () => {\n  n = 1\n})\nboom()"
    interp, surface = make(src)
    interp.run()
    assert interp.state.error == 'ReferenceError: boom is not defined'
    surface.click('go')
    assert len(interp.state.stack) == 1
    assert interp.state.logs[-1] == 'Ignored click event: execution stopped after an error'


def test_console_without_surface_and_document_without_surface():
    interp = Interpreter("console.log('a', 1, true, null)\nconst x = document.getElementById('x')")
    interp.run()
    assert interp.state.logs == ['a 1 true null', 'Element with id x not found', 'Declared x = null']


def test_event_fired_from_another_thread_waits_for_the_lock():
    src = "document.getElementById('go').addEventListener('click', () => {\n  hits = 1\n})"
    interp, surface = make(src)
    interp.run()
    with interp.lock:
        worker = threading.Thread(target=surface.click, args=('go',))
        worker.start()
        worker.join(timeout=0.2)
        # the listener cannot get in while we hold the lock
        assert len(interp.state.stack) == 1
    worker.join()
    assert len(interp.state.stack) == 2


def test_append_child_stores_the_live_element():
    src = (
        "const list = document.getElementById('list')\n"
        "const item = document.createElement('li')\n"
        "item.textContent = 'c'\n"
        "list.appendChild(item)\n"
        "console.log(list.children.length, list.textContent)\n"
    )
    interp, surface = make(src)
    interp.run()
    assert interp.state.error is None
    assert 'Created <li> element' in interp.state.logs
    assert interp.state.logs[-1] == '3 abc'
    children = surface.document.getElementById('list').children
    assert all(isinstance(child, Element) for child in children)
    assert children[-1].parent is surface.document.getElementById('list')


def test_create_element_without_a_surface():
    interp = Interpreter("const p = document.createElement('p')\np.textContent = 'hi'\nconsole.log(p.outerHTML)")
    interp.run()
    assert isinstance(interp.state.globals.values['p'], ElementHandle)
    assert interp.state.logs[0] == 'Created <p> element'
    assert interp.state.logs[-1] == '<p>hi</p>'


def test_children_come_back_wrapped():
    src = (
        "const list = document.getElementById('list')\n"
        "const first = list.children[0]\n"
        "const gone = list.removeChild(list.children[1])\n"
        "const title = document.getElementById('title')\n"
        "title.innerHTML = 'x<b>y</b>'\n"
        "const kids = title.children\n"
        "console.log(kids.length, kids[0], kids[1].textContent, gone.className)\n"
    )
    interp, surface = make(src)
    interp.run()
    values = interp.state.globals.values
    assert isinstance(values['first'], ElementHandle)
    assert values['first'].element is surface.document.querySelector('.item')
    assert isinstance(values['gone'], ElementHandle)
    assert isinstance(values['kids'], list)
    assert isinstance(values['kids'][1], ElementHandle)
    assert len(surface.document.getElementById('list').children) == 1
    assert interp.state.logs[-1] == '2 x y item done'


def test_private_members_are_not_reachable():
    src = (
        "const t = document.getElementById('title')\n"
        "console.log(typeof t._listeners, typeof t.__class__, typeof document._bridge, typeof console.to_json)\n"
    )
    interp, _ = make(src)
    interp.run()
    assert interp.state.error is None
    assert interp.state.logs[-1] == 'undefined undefined undefined undefined'


def test_listener_on_a_child_element_runs_the_handler():
    src = (
        "let hits = 0\n"
        "const li = document.getElementById('list').children[0]\n"
        "li.addEventListener('click', function () {\n"
        "  hits = hits + 1\n"
        "})\n"
    )
    interp, surface = make(src)
    interp.run()
    surface.document.querySelector('.item').click()
    interp.run()
    assert interp.state.error is None
    assert interp.state.globals.values['hits'] == 1


def test_same_handler_is_registered_once_and_can_be_removed():
    src = (
        "let hits = 0\n"
        "function bump() {\n"
        "  hits = hits + 1\n"
        "  go.removeEventListener('click', bump)\n"
        "}\n"
        "const go = document.getElementById('go')\n"
        "go.addEventListener('click', bump)\n"
        "go.addEventListener('click', bump)\n"
    )
    interp, surface = make(src)
    interp.run()
    button = surface.document.getElementById('go')
    assert button.listener_count('click') == 1

    for _ in range(2):
        surface.click('go')
        interp.run()
    assert interp.state.error is None
    assert interp.state.globals.values['hits'] == 1
    assert button.listener_count('click') == 0
    assert interp.state.logs.count('Removed click listener') == 1
