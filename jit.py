#!/usr/bin/python3
#-*- coding:utf8 -*-

"""
Native compilation through LLVM.

Python functions are traced: they are called once with `Integer` wrappers in place of their
arguments, and every arithmetic operation performed on the wrappers emits an LLVM instruction.
All values are signed 64-bit integers; arithmetic wraps around.
"""


import ctypes
import llvmlite.ir
import llvmlite.binding


__all__ = 'Compiler', 'Code', 'Function', 'Integer', 'word_bits'


word_bits = 64
word_type = llvmlite.ir.IntType(word_bits)


compiler_initialized = False


def initialize_compiler():
	"Initialize the LLVM compiler."

	global compiler_initialized
	try:
		llvmlite.binding.initialize()
	except RuntimeError:
		pass # newer llvmlite initializes the core by itself and refuses the call
	llvmlite.binding.initialize_native_target()
	llvmlite.binding.initialize_native_asmprinter()
	compiler_initialized = True


class Code:
	"Native code compiled from an LLVM module. Compiled functions are available under the attribute `symbol`."

	def __init__(self, module):
		if not compiler_initialized:
			initialize_compiler()
		target = llvmlite.binding.Target.from_default_triple()
		target_machine = target.create_target_machine(opt=2)
		backing_mod = llvmlite.binding.parse_assembly("")
		self.engine = llvmlite.binding.create_mcjit_compiler(backing_mod, target_machine)

		self.module = llvmlite.binding.parse_assembly(str(module))
		self.module.verify()
		self.engine.add_module(self.module)
		self.engine.finalize_object()

		self.symbol = {}
		for function in module.functions:
			if function.is_declaration: continue
			address = self.engine.get_function_address(function.name)
			ftype = ctypes.CFUNCTYPE(ctypes.c_int64, *[ctypes.c_int64 for _arg in function.args])
			self.symbol[function.name] = ftype(address)

	def __enter__(self):
		self.engine.run_static_constructors()
		return self

	def __exit__(self, *arg):
		self.engine.run_static_destructors()


class Compiler:
	"Collects traced functions into one LLVM module."

	def __init__(self, name=''):
		self.module = llvmlite.ir.Module(name=name)
		self.defined_functions = {}

	def function(self, name=None, arg_count=None):
		"""
		Decorator tracing a Python function into a native one. A function raising `NotImplementedError`
		while traced is only declared, so it may be called before it gets defined by a later trace.
		"""

		def decorator(old_func):
			fname = name if name is not None else old_func.__name__
			count = arg_count if arg_count is not None else old_func.__code__.co_argcount

			try:
				jit_func = self.defined_functions[fname]
			except KeyError:
				functype = llvmlite.ir.FunctionType(word_type, [word_type] * count)
				jit_func = llvmlite.ir.Function(self.module, functype, name=fname)
				self.defined_functions[fname] = jit_func
			else:
				if len(jit_func.args) != count:
					raise ValueError(f"Function `{fname}` redeclared with {count} arguments instead of {len(jit_func.args)}.")
				if jit_func.blocks:
					raise ValueError(f"Function `{fname}` is already defined.")

			block = jit_func.append_basic_block()
			builder = llvmlite.ir.IRBuilder(block)

			global current_builder
			old_builder = current_builder
			current_builder = builder
			try:
				result = old_func(*[Integer(_arg) for _arg in jit_func.args])
				builder.ret(Integer(result).jit_value)
			except NotImplementedError:
				jit_func.blocks.remove(block)
			except Exception:
				jit_func.blocks.remove(block)
				raise
			finally:
				current_builder = old_builder

			new_func = Function(jit_func)
			new_func.__name__ = fname
			return new_func

		return decorator

	def __str__(self):
		"LLVM assembler representation of the code compiled so far."
		return str(self.module)

	def compile(self):
		return Code(self.module)


current_builder = None

def get_builder():
	if current_builder is None:
		raise RuntimeError("Native operations are only possible while a function is traced.")
	return current_builder


class Function:
	"A compiled function called from other traced functions. Calling it emits a call instruction."

	def __init__(self, func):
		self.jit_func = func

	def __call__(self, *args):
		result = get_builder().call(self.jit_func, [Integer(_arg).jit_value for _arg in args])
		return Integer(result)


class Integer:
	"Wrapper around an LLVM integer. Can be used like an integer in traced code."

	def __init__(self, value):
		try:
			self.jit_value = value.jit_value
		except AttributeError:
			pass
		else:
			return

		if isinstance(value, int) and not isinstance(value, bool):
			self.jit_value = word_type(value)
		elif hasattr(value, 'type') and getattr(value.type, 'width', None) == word_bits:
			self.jit_value = value
		else:
			raise TypeError(f"Only {word_bits}-bit integers can be compiled. (Got {type(value).__name__}.)")

	def __add__(self, other):
		other = self.__class__(other)
		return self.__class__(get_builder().add(self.jit_value, other.jit_value))

	__radd__ = __add__

	def __sub__(self, other):
		other = self.__class__(other)
		return self.__class__(get_builder().sub(self.jit_value, other.jit_value))

	def __rsub__(self, other):
		other = self.__class__(other)
		return self.__class__(get_builder().sub(other.jit_value, self.jit_value))

	def __mul__(self, other):
		other = self.__class__(other)
		return self.__class__(get_builder().mul(self.jit_value, other.jit_value))

	__rmul__ = __mul__

	def __neg__(self):
		return self.__class__(get_builder().neg(self.jit_value))

	def __pos__(self):
		return self

	__bool__ = None

	__hash__ = None


if __debug__:
	from random import Random

	def test_compiler():
		compiler = Compiler()

		@compiler.function()
		def adder(x, y):
			return x + y

		@compiler.function()
		def square(x):
			return x * x

		@compiler.function()
		def increment(x):
			raise NotImplementedError

		@compiler.function()
		def inc2(x):
			return increment(increment(x))

		@compiler.function()
		def increment(x):
			return x + 1

		@compiler.function()
		def polynomial(x, y):
			return 3 - 2 * x * square(y) + (-x)

		@compiler.function()
		def return_const():
			return 7

		try:
			@compiler.function()
			def adder(x, y):
				return x - y
		except ValueError:
			pass
		else:
			assert False, "function defined twice"

		try:
			@compiler.function()
			def halve(x):
				return x * 0.5
		except TypeError:
			pass
		else:
			assert False, "float compiled"

		assert 'define i64 @"adder"' in str(compiler)

		code = compiler.compile()
		assert 'halve' not in code.symbol

		with code:
			assert code.symbol['adder'](2, 2) == 4
			assert code.symbol['adder'](-7, 2) == -5
			assert code.symbol['adder'](2**62, 2**62) == -2**63
			assert code.symbol['square'](-4) == 16
			assert code.symbol['increment'](7) == 8
			assert code.symbol['inc2'](8) == 10
			assert code.symbol['polynomial'](5, 3) == 3 - 2 * 5 * 9 - 5
			assert code.symbol['return_const']() == 7

		try:
			Integer(1) + 1
		except RuntimeError:
			pass
		else:
			assert False, "traced outside of a function"

	def test_polynomial_compilation():
		from polynomial import Polynomial
		from term import Nested

		x, y, z = map(Polynomial, 'xyz')
		compiler = Compiler()

		p = 3 * x**2 * y - 2 * y * z + Polynomial(Nested(x - z))**2 + 5
		p.compile('p', compiler)

		@compiler.function()
		def cube(v):
			return v * v * v

		q = (x + 1).apply('cube') * y - x
		q.compile('q', compiler, {'cube': cube})

		zero = Polynomial.zero()
		zero.compile('zero', compiler)

		code = compiler.compile()
		pc = p.wrap_compiled('p', code)
		qc = q.wrap_compiled('q', code)
		zc = zero.wrap_compiled('zero', code)

		r = Random(0)
		with code:
			assert zc() == 0
			for n in range(50):
				values = dict((_v, r.randrange(-100, 101)) for _v in 'xyz')
				assert pc(**values) == p.evaluate(values)
				assert qc(**values) == q.evaluate(values, {'cube': lambda _v: _v**3})

		try:
			(x**-1).compile('inverse', compiler)
		except TypeError:
			pass
		else:
			assert False, "negative power compiled"

	def jit_test_suite(verbose=False):
		if verbose: print("running test suite")
		if verbose: print(" compiler test")
		test_compiler()
		if verbose: print(" polynomial compilation test")
		test_polynomial_compilation()

	__all__ = __all__ + ('test_compiler', 'test_polynomial_compilation', 'jit_test_suite')


if __debug__ and __name__ == '__main__':
	jit_test_suite(verbose=True)
