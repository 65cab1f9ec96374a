#!/usr/bin/python3
#-*- coding:utf8 -*-

"""
Atoms of polynomial expressions: bases, factors and monomials.

A base is a symbol, a named function applied to a polynomial or a whole
polynomial treated as one unit. Bases are totally ordered: symbols first,
then derived terms, then nested polynomials. The order recurses into the
polynomials the bases carry and defines the canonical form of monomials.
"""


__all__ = 'Base', 'Sym', 'Derived', 'Nested', 'Factor', 'Monomial', 'as_base'


from utils import Ordered, compare, compare_sequences, superscript


class Base(Ordered):
	"Something that can be raised to a power. Subclasses differ in `rank`, which orders the variants."

	rank = None

	def is_symbol(self):
		return False

	def is_nested(self):
		return False

	def compare(self, other):
		if self.rank != other.rank:
			return compare(self.rank, other.rank)
		return self.compare_payload(other)

	def compare_payload(self, other):
		raise NotImplementedError

	def format(self, separator='', superscripts=False):
		raise NotImplementedError

	def __str__(self):
		return self.format()


class Sym(Base):
	"A named variable."

	rank = 0

	def __init__(self, name):
		if not isinstance(name, str):
			raise TypeError(f"Symbol name must be a string. (Got {type(name).__name__}.)")
		self.name = name

	def is_symbol(self):
		return True

	def compare_payload(self, other):
		return compare(self.name, other.name)

	def __hash__(self):
		return hash(self.name)

	def __repr__(self):
		return f'{self.__class__.__name__}({self.name!r})'

	def format(self, separator='', superscripts=False):
		return self.name


class Derived(Base):
	"Uninterpreted function `function` applied to the polynomial `parameter`."

	rank = 1

	def __init__(self, function, parameter):
		if not isinstance(function, str):
			raise TypeError(f"Function name must be a string. (Got {type(function).__name__}.)")
		self.function = function
		self.parameter = parameter.copy()

	def compare_payload(self, other):
		return compare(self.function, other.function) or self.parameter.compare(other.parameter)

	def __repr__(self):
		return f'{self.__class__.__name__}({self.function!r}, {self.parameter!r})'

	def format(self, separator='', superscripts=False):
		parameter = self.parameter.format(separator, superscripts)
		if self.parameter.is_symbol():
			return self.function + parameter
		else:
			return self.function + '(' + parameter + ')'


class Nested(Base):
	"A polynomial used as a single algebraic unit, e.g. a factored sub-expression."

	rank = 2

	def __init__(self, polynomial):
		self.polynomial = polynomial.copy()

	def is_nested(self):
		return True

	def compare_payload(self, other):
		return self.polynomial.compare(other.polynomial)

	def __repr__(self):
		return f'{self.__class__.__name__}({self.polynomial!r})'

	def format(self, separator='', superscripts=False):
		polynomial = self.polynomial.format(separator, superscripts)
		if self.polynomial.is_symbol():
			return polynomial
		else:
			return '(' + polynomial + ')'


def as_base(value):
	"Accept a base or a symbol name."
	if isinstance(value, Base):
		return value
	elif isinstance(value, str):
		return Sym(value)
	else:
		raise TypeError(f"Can not make a base from {type(value).__name__}.")


class Factor(Ordered):
	"A base raised to a nonzero integer power."

	def __init__(self, base, power=1):
		if not isinstance(power, int) or isinstance(power, bool):
			raise TypeError(f"Factor power must be an integer. (Got {power!r}.)")
		if power == 0:
			raise ValueError("Factor power must not be zero.")
		self.base = as_base(base)
		self.power = power

	def is_symbol(self):
		return self.power == 1 and self.base.is_symbol()

	def compare(self, other):
		return self.base.compare(other.base) or compare(self.power, other.power)

	def __repr__(self):
		return f'{self.__class__.__name__}({self.base!r}, {self.power!r})'

	def format(self, separator='', superscripts=False):
		base = self.base.format(separator, superscripts)
		if self.power == 1:
			return base
		elif superscripts:
			return base + superscript(self.power)
		else:
			return base + '^' + str(self.power)

	def __str__(self):
		return self.format()


class Monomial(Ordered):
	"""
	A coefficient times a product of factors.

	In canonical form the factors have pairwise distinct bases, are sorted by base and none has power 0.
	Monomials are treated as values: operations build new ones instead of modifying the factor list.
	"""

	def __init__(self, coefficient=1, factors=()):
		self.coefficient = coefficient
		self.factors = list(factors)

	def copy(self):
		return self.__class__(self.coefficient, self.factors)

	def compare(self, other):
		return compare_sequences(self.factors, other.factors, Factor.compare) or compare(self.coefficient, other.coefficient)

	def __repr__(self):
		return f'{self.__class__.__name__}({self.coefficient!r}, {self.factors!r})'

	def merge_factors(self):
		"Sum the powers of factors sharing a base, drop those that cancel, sort the rest by base."

		powers = []
		for factor in sorted(self.factors, key=lambda _factor: _factor.base):
			if powers and powers[-1][0] == factor.base:
				powers[-1][1] += factor.power
			else:
				powers.append([factor.base, factor.power])
		self.factors = [Factor(_base, _power) for (_base, _power) in powers if _power]

	def is_symbol(self):
		return len(self.factors) == 1 and self.factors[0].is_symbol()

	def like(self, other):
		return self.factors == other.factors

	def contains_nested(self):
		return any(_factor.base.is_nested() for _factor in self.factors)

	def power_of(self, base):
		"Power of the factor with the given base, 0 if there is none."
		base = as_base(base)
		for factor in self.factors:
			if factor.base == base:
				return factor.power
		return 0

	def extract(self, factor):
		"""
		Divide by `factor`. Returns the quotient, or `None` if this monomial
		has no factor with the same base and at least the same power.
		"""
		for index, own in enumerate(self.factors):
			if own.base == factor.base:
				if own.power < factor.power:
					return None
				factors = list(self.factors)
				if own.power == factor.power:
					del factors[index]
				else:
					factors[index] = Factor(own.base, own.power - factor.power)
				return self.__class__(self.coefficient, factors)
		return None

	def group_by(self, bases):
		"Split into the monomial of factors with base in `bases` and the list of remaining factors."
		kept = []
		outside = []
		for factor in self.factors:
			if factor.base in bases:
				kept.append(factor)
			else:
				outside.append(factor)
		return self.__class__(self.coefficient, kept), outside

	def __neg__(self):
		return self.__class__(-self.coefficient, self.factors)

	def __mul__(self, other):
		try:
			result = self.__class__(self.coefficient * other.coefficient, self.factors + other.factors)
		except AttributeError:
			return NotImplemented
		result.merge_factors()
		return result


if __debug__:
	def test_base_order():
		from polynomial import Polynomial

		a = Sym('a')
		b = Sym('b')
		assert a < b
		assert b > a
		assert a == Sym('a')
		assert a != b
		assert hash(a) == hash(Sym('a'))

		x = Polynomial('x')
		y = Polynomial('y')
		sin_x = Derived('sin', x)
		sin_y = Derived('sin', y)
		cos_x = Derived('cos', x)

		assert b < sin_x
		assert Sym('zzz') < Derived('a', Polynomial(1))
		assert cos_x < sin_x
		assert sin_x < sin_y
		assert sin_x == Derived('sin', Polynomial('x'))

		n1 = Nested(x + y)
		n2 = Nested(x + 1)
		assert sin_y < n1
		assert a < n1
		assert n2 < n1 # the constant term sorts first and has no factors
		assert Nested(x + y) == n1
		assert Nested(2 * x + y) != n1

		assert sorted([n1, sin_x, b, cos_x, a]) == [a, b, cos_x, sin_x, n1]

		try:
			Derived(3, x)
		except TypeError:
			pass
		else:
			assert False, "non-string function name accepted"

	def test_base_owns_polynomial():
		from polynomial import Polynomial

		x = Polynomial('x')
		p = x * Polynomial('y') + x * Polynomial('z')
		n = Nested(p)
		d = Derived('sin', p)
		assert p.extract_common_factors() == [Factor('x')]
		assert str(p) == "y + z"
		assert str(n) == "(xy + xz)"
		assert str(d) == "sin(xy + xz)"

	def test_factor():
		x2 = Factor('x', 2)
		assert x2.base == Sym('x')
		assert not x2.is_symbol()
		assert Factor('x').is_symbol()
		assert Factor('x', 1) < Factor('x', 2) < Factor('y', 1)
		assert str(x2) == "x^2"
		assert x2.format(superscripts=True) == "x²"
		assert Factor('x', -1).format(superscripts=True) == "x⁻¹"

		try:
			Factor('x', 0)
		except ValueError:
			pass
		else:
			assert False, "zero power accepted"

		try:
			Factor(3, 1)
		except TypeError:
			pass
		else:
			assert False, "non-base accepted"

		for power in (1.5, True, '2'):
			try:
				Factor('x', power)
			except TypeError:
				pass
			else:
				assert False, f"power {power!r} accepted"

	def test_merge_factors():
		m = Monomial(3, [Factor('y'), Factor('x', 2), Factor('y', -1), Factor('x'), Factor('a', 4)])
		m.merge_factors()
		assert m.factors == [Factor('a', 4), Factor('x', 3)]
		assert m.coefficient == 3

		again = m.copy()
		again.merge_factors()
		assert again == m

		m = Monomial(2, [Factor('x'), Factor('x', -1)])
		m.merge_factors()
		assert m.factors == []

	def test_monomial_queries():
		m = Monomial(5, [Factor('x', 2), Factor('y')])
		assert m.power_of('x') == 2
		assert m.power_of(Sym('y')) == 1
		assert m.power_of('z') == 0

		assert m.extract(Factor('x')) == Monomial(5, [Factor('x'), Factor('y')])
		assert m.extract(Factor('x', 2)) == Monomial(5, [Factor('y')])
		assert m.extract(Factor('x', 3)) is None
		assert m.extract(Factor('z')) is None
		assert m == Monomial(5, [Factor('x', 2), Factor('y')]), "extract must not modify the monomial"

		assert Monomial(1, [Factor('x')]).is_symbol()
		assert Monomial(7, [Factor('x')]).is_symbol()
		assert not Monomial(1, [Factor('x', 2)]).is_symbol()
		assert not Monomial(1, []).is_symbol()
		assert not m.is_symbol()

		kept, outside = m.group_by([Sym('y')])
		assert kept == Monomial(5, [Factor('y')])
		assert outside == [Factor('x', 2)]

	def test_monomial_arithmetic():
		a = Monomial(2, [Factor('x'), Factor('y')])
		b = Monomial(-3, [Factor('x', -1), Factor('z')])
		assert a * b == Monomial(-6, [Factor('y'), Factor('z')])
		assert -a == Monomial(-2, [Factor('x'), Factor('y')])
		assert a.like(-a)
		assert not a.like(b)
		assert Monomial(1, [Factor('x')]) < Monomial(1, [Factor('x'), Factor('y')])

	__all__ = __all__ + ('test_base_order', 'test_base_owns_polynomial', 'test_factor', 'test_merge_factors', 'test_monomial_queries', 'test_monomial_arithmetic')


if __debug__ and __name__ == '__main__':
	test_base_order()
	test_base_owns_polynomial()
	test_factor()
	test_merge_factors()
	test_monomial_queries()
	test_monomial_arithmetic()
