#!/usr/bin/python3
#-*- coding:utf-8 -*-


"HTTP service exposing the polynomial transformations. Polynomials travel in their serialized JSON form."


from flask import Flask, request, abort
import json

from polynomial import Polynomial
from term import Factor, Monomial


app = Flask('mathguru_demo')


mime_type = {}
mime_type['json'] = [('Content-Type', 'application/json;charset=utf-8'), ('Cache-Control', 'no-store')]


def make_error_handler(http_error):
	@app.errorhandler(http_error)
	def error_handler(error):
		return json.dumps({'error': http_error, 'description': error.description}), http_error, mime_type['json']
	error_handler.__name__ = f'error_{http_error}'
	return error_handler

for http_error in [400, 404, 405, 415, 422]:
	make_error_handler(http_error)


def encode(polynomial):
	return {'result': polynomial.serialize(), 'text': str(polynomial)}


def reply(body):
	return json.dumps(body), 200, mime_type['json']


operations = {}


def make_operation(path, description):
	"Register a POST endpoint. The handler gets the decoded JSON object; bad input answers 400."

	def decorator(handler):
		def operation():
			data = request.get_json(silent=True)
			try:
				if not isinstance(data, dict):
					raise ValueError("Request body must be a JSON object.")
				return reply(handler(data))
			except (KeyError, TypeError, ValueError, ArithmeticError) as error:
				print(error)
				abort(400)
		operation.__name__ = handler.__name__
		operations[path] = description
		return app.route(path, methods=['POST'])(operation)

	return decorator


def read_polynomial(data, key='polynomial'):
	return Polynomial.deserialize(data[key])


@app.route('/')
def index():
	return json.dumps(operations), 200, mime_type['json']


@make_operation('/expand', "Multiply out nested polynomials. Fields: polynomial.")
def expand(data):
	p = read_polynomial(data)
	p.expand()
	return encode(p)


@make_operation('/group_by', "Factor out everything except the given symbols. Fields: polynomial, bases (list of symbol names).")
def group_by(data):
	p = read_polynomial(data)
	bases = data['bases']
	if not isinstance(bases, list) or not all(isinstance(_base, str) for _base in bases):
		raise ValueError(f"Bases must be a list of symbol names. (Got {bases!r}.)")
	p.group_by(bases)
	return encode(p)


@make_operation('/extract_common_factors', "Divide out the factors shared by all terms. Fields: polynomial.")
def extract_common_factors(data):
	p = read_polynomial(data)
	common = Polynomial(Monomial(1, p.extract_common_factors()))
	body = encode(p)
	body['common'] = encode(common)
	return body


@make_operation('/collect_by', "Sort terms into buckets by divisibility. Fields: polynomial, factors (list of [symbol name, power]).")
def collect_by(data):
	p = read_polynomial(data)
	factors = [Factor(_name, _power) for (_name, _power) in data['factors']]
	buckets, remainder = p.collect_by(factors)
	return {'buckets': [encode(_bucket) for _bucket in buckets], 'remainder': encode(remainder)}


@make_operation('/simplify_by_identity', "Rewrite using the identity lhs == rhs. Fields: polynomial, lhs, rhs, expand (optional).")
def simplify_by_identity(data):
	p = read_polynomial(data)
	result = p.simplify_by_identity(read_polynomial(data, 'lhs'), read_polynomial(data, 'rhs'))
	if data.get('expand', False):
		result.expand()
	return encode(result)


if __debug__:
	from term import Nested

	def test_index():
		client = app.test_client()
		response = client.get('/')
		assert response.status_code == 200
		assert set(response.get_json().keys()) == {'/expand', '/group_by', '/extract_common_factors', '/collect_by', '/simplify_by_identity'}

	def test_expand():
		x, y = map(Polynomial, 'xy')
		p = Polynomial(Nested(x + y)) * Polynomial(Nested(x - y))
		client = app.test_client()
		response = client.post('/expand', json={'polynomial': p.serialize()})
		assert response.status_code == 200
		body = response.get_json()
		assert Polynomial.deserialize(body['result']) == x**2 - y**2
		assert body['text'] == str(x**2 - y**2)

	def test_group_by():
		a, b, c, x = map(Polynomial, 'abcx')
		p = a * x + b * x + c
		client = app.test_client()
		body = client.post('/group_by', json={'polynomial': p.serialize(), 'bases': ['a', 'b']}).get_json()
		expected = c + x * Polynomial(Nested(a + b))
		assert Polynomial.deserialize(body['result']) == expected
		assert body['text'] == str(expected)

	def test_extract_common_factors():
		x, y = map(Polynomial, 'xy')
		p = x**2 * y + x * y**2
		client = app.test_client()
		body = client.post('/extract_common_factors', json={'polynomial': p.serialize()}).get_json()
		assert Polynomial.deserialize(body['result']) == x + y
		assert Polynomial.deserialize(body['common']['result']) == x * y

	def test_collect_by():
		a, b, x, y = map(Polynomial, 'abxy')
		p = x**2 * a + x**2 * b + y + 3
		client = app.test_client()
		body = client.post('/collect_by', json={'polynomial': p.serialize(), 'factors': [['x', 2]]}).get_json()
		assert len(body['buckets']) == 1
		assert Polynomial.deserialize(body['buckets'][0]['result']) == a + b
		assert Polynomial.deserialize(body['remainder']['result']) == y + 3

	def test_simplify_by_identity():
		x, y, z = map(Polynomial, 'xyz')
		p = x**2 * z + y**2 * z + 1
		client = app.test_client()
		request_data = {'polynomial': p.serialize(), 'lhs': (x**2 + y**2).serialize(), 'rhs': Polynomial.one().serialize(), 'expand': True}
		body = client.post('/simplify_by_identity', json=request_data).get_json()
		assert Polynomial.deserialize(body['result']) == z + 1
		assert body['text'] == "1 + z"

		request_data['lhs'] = (2 * x**2).serialize()
		response = client.post('/simplify_by_identity', json=request_data)
		assert response.status_code == 400

	def test_bad_requests():
		client = app.test_client()

		response = client.post('/expand', data="nonsense")
		assert response.status_code == 400
		assert response.get_json()['error'] == 400

		assert client.post('/expand', json=[1, 2]).status_code == 400
		assert client.post('/expand', json={'polynomial': [[1, [[{'unknown': 'x'}, 1]]]]}).status_code == 400
		assert client.post('/group_by', json={'polynomial': [], 'bases': 'x'}).status_code == 400
		assert client.post('/collect_by', json={'polynomial': [], 'factors': [['x', 0]]}).status_code == 400
		assert client.post('/collect_by', json={'polynomial': [], 'factors': [[3, 1]]}).status_code == 400
		assert client.post('/collect_by', json={'polynomial': [], 'factors': [['x', 1.5]]}).status_code == 400

		response = client.get('/expand')
		assert response.status_code == 405
		assert response.get_json()['error'] == 405
		assert client.get('/nowhere').status_code == 404


if __name__ == '__main__':
	app.run(debug=True)
