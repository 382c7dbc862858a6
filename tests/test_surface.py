import pytest

from jstepper.surface import Document, Element, Surface, parse_fragment


def test_document_is_built_from_html():
    doc = Document('<div id="box" class="card wide"><p>Hi <b>there</b></p><br><img src="x.png"></div>')
    box = doc.getElementById('box')
    assert box.tagName == 'DIV'
    assert box.className == 'card wide'
    assert box.textContent == 'Hi there'
    assert [c.tagName for c in box.children] == ['P', 'BR', 'IMG']
    assert doc.getElementById('missing') is None


def test_selectors():
    doc = Document('<p class="a">1</p><span class="a b">2</span><p>3</p>')
    assert [e.textContent for e in doc.querySelectorAll('.a')] == ['1', '2']
    assert [e.textContent for e in doc.querySelectorAll('p')] == ['1', '3']
    assert doc.querySelector('span.b').textContent == '2'
    assert doc.querySelector('#nothing') is None
    assert doc.querySelectorAll('') == []


def test_inner_html_round_trip_and_text_escaping():
    el = Element('div')
    el.innerHTML = '<em>a &amp; b</em>'
    assert el.textContent == 'a & b'
    assert el.innerHTML == '<em>a &amp; b</em>'
    el.textContent = 5
    assert el.children == ['5']


def test_attributes_and_value():
    (field,) = parse_fragment('<input id="n" value="3" disabled>')
    assert field.value == '3'
    field.value = 7
    assert field.value == '7'
    assert field.getAttribute('value') == '3'
    assert field.hasAttribute('disabled')
    field.setAttribute('title', 'num')
    assert field.getAttribute('title') == 'num'
    field.removeAttribute('title')
    assert field.getAttribute('title') is None


def test_listeners_fire_in_registration_order():
    el = Element('button', {'id': 'b'})
    calls = []

    def first(event):
        calls.append(('first', event['type'], event['target']))

    def second(event):
        calls.append(('second', event['type'], event['target']))

    el.addEventListener('click', first)
    el.addEventListener('click', second)
    el.addEventListener('click', first)
    el.click()
    assert calls == [('first', 'click', el), ('second', 'click', el)]
    el.removeEventListener('click', first)
    el.dispatchEvent({'type': 'click', 'detail': 1})
    assert calls[-1] == ('second', 'click', el)
    assert el.listener_count('click') == 1


def test_surface_dialogs():
    surface = Surface(answers=['yes'])
    surface.alert(3)
    assert surface.alerts == ['3']
    assert surface.prompt('Sure?') == 'yes'
    assert surface.prompt('Again?') is None
    assert surface.prompts == ['Sure?', 'Again?']


def test_click_on_unknown_id():
    surface = Surface.from_html('<p id="x"></p>')
    with pytest.raises(KeyError):
        surface.click('y')
