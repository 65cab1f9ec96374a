#!/usr/bin/python3


__all__ = 'superscript', 'compare', 'compare_sequences', 'Ordered'


superscripts = str.maketrans("-0123456789", "⁻⁰¹²³⁴⁵⁶⁷⁸⁹")

def superscript(n):
	return str(int(n)).translate(superscripts)


def compare(a, b):
	"Three-way comparison of plain values: -1, 0 or 1."
	return (a > b) - (a < b)


def compare_sequences(a, b, compare_item):
	"Lexicographic three-way comparison. A strict prefix orders first."
	for x, y in zip(a, b):
		c = compare_item(x, y)
		if c:
			return c
	return compare(len(a), len(b))


class Ordered:
	"Derive the rich comparisons from a three-way `compare` method."

	def compare(self, other):
		raise NotImplementedError

	def __eq__(self, other):
		try:
			return self.compare(other) == 0
		except AttributeError:
			return NotImplemented

	def __ne__(self, other):
		try:
			return self.compare(other) != 0
		except AttributeError:
			return NotImplemented

	def __lt__(self, other):
		try:
			return self.compare(other) < 0
		except AttributeError:
			return NotImplemented

	def __le__(self, other):
		try:
			return self.compare(other) <= 0
		except AttributeError:
			return NotImplemented

	def __gt__(self, other):
		try:
			return self.compare(other) > 0
		except AttributeError:
			return NotImplemented

	def __ge__(self, other):
		try:
			return self.compare(other) >= 0
		except AttributeError:
			return NotImplemented

	__hash__ = None


if __debug__:
	def test_superscript():
		assert superscript(0) == "⁰"
		assert superscript(12) == "¹²"
		assert superscript(-3) == "⁻³"

	def test_compare():
		assert compare(1, 2) == -1
		assert compare(2, 2) == 0
		assert compare("b", "a") == 1

		assert compare_sequences([1, 2], [1, 2], compare) == 0
		assert compare_sequences([1], [1, 2], compare) == -1
		assert compare_sequences([1, 3], [1, 2, 5], compare) == 1
		assert compare_sequences([], [], compare) == 0

	__all__ = __all__ + ('test_superscript', 'test_compare')


if __debug__ and __name__ == '__main__':
	test_superscript()
	test_compare()
