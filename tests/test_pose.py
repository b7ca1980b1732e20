"""Tests for SE2 transform values."""

import io

import hypothesis
import jax
import jax.numpy as jnp
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_spatial import SE2, Twist
from jax_spatial.errors import InvalidOperandType, LengthMismatch, NonIntegerExponent, UnrecognizedArgument
from jax_spatial.transforms import se2, so2

hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)

xyt_strategy = st.tuples(
    st.floats(min_value=-10.0, max_value=10.0),
    st.floats(min_value=-10.0, max_value=10.0),
    st.floats(min_value=-3.1, max_value=3.1),
)


# Construction
def test_construct_degrees():
    """Test SE2(1, 2, 90, 'deg')."""
    T = SE2(1, 2, 90, "deg")
    assert len(T) == 1
    np.testing.assert_allclose(T.t, jnp.array([1.0, 2.0]))
    np.testing.assert_allclose(T.theta, jnp.pi / 2, atol=1e-12)
    np.testing.assert_allclose(T.R, jnp.array([[0.0, -1.0], [1.0, 0.0]]), atol=1e-12)
    assert str(T) == "t = (1, 2), theta = 90 deg"


def test_construct_translation():
    """Test SE2([3, 4]) is a pure translation."""
    T = SE2([3, 4])
    np.testing.assert_allclose(T.matrix, jnp.array([[1.0, 0.0, 3.0], [0.0, 1.0, 4.0], [0.0, 0.0, 1.0]]))
    assert T == SE2(3.0, 4.0)


def test_construct_identity():
    """Test the no-argument form and identity(n)."""
    np.testing.assert_allclose(SE2().matrix, jnp.eye(3))
    I = SE2.identity(3)
    assert len(I) == 3
    np.testing.assert_allclose(I.T(), jnp.broadcast_to(jnp.eye(3), (3, 3, 3)))


def test_construct_rows():
    """Test a 5x3 matrix gives five transforms, one per row."""
    rows = np.array([[i, -i, 0.1 * i] for i in range(5)], dtype=float)
    T = SE2(rows)
    assert len(T) == 5
    np.testing.assert_allclose(T.xyt(), rows, atol=1e-12)
    for i, Ti in enumerate(T):
        np.testing.assert_allclose(Ti.xyt(), rows[i], atol=1e-12)


def test_construct_rotation_forms():
    """Test rotation-matrix and homogeneous-matrix arguments."""
    R = so2.rot2(0.4)
    T = SE2(R, [1.0, -1.0])
    np.testing.assert_allclose(T.R, R)
    np.testing.assert_allclose(T.t, jnp.array([1.0, -1.0]))

    stack = se2.from_xyt(jnp.array([[0.0, 0.0, 0.1], [1.0, 2.0, 0.2]]))
    assert len(SE2(stack)) == 2
    np.testing.assert_allclose(SE2(stack).T(), stack)
    assert len(SE2(so2.rot2(jnp.array([0.1, 0.2, 0.3])))) == 3


def test_construct_clone_and_concat():
    """Test cloning and concatenation preserve element order."""
    a, b = SE2(1.0, 2.0), SE2(3.0, 4.0, 0.5)
    assert SE2(a) == a
    both = SE2.concat([a, b])
    assert len(both) == 2
    assert both[0] == a
    assert both[-1] == b
    assert len(SE2([both, a])) == 3


def test_construct_invalid():
    """Test unsupported constructor input."""
    with pytest.raises(UnrecognizedArgument):
        SE2([1.0, 2.0, 3.0, 4.0])
    with pytest.raises(UnrecognizedArgument):
        SE2(1.0, 2.0, unit="grad")
    with pytest.raises(UnrecognizedArgument):
        SE2(2.0 * jnp.eye(2))


def test_isa_and_check():
    """Test the homogeneous matrix predicate and coercion."""
    assert SE2.isa(jnp.eye(3))
    assert SE2.isa(jnp.eye(3), valid=True)
    assert not SE2.isa(jnp.eye(2))

    T = SE2(1.0, 2.0)
    assert SE2.check(T) is T
    assert SE2.check(np.eye(3)) == SE2()
    with pytest.raises(InvalidOperandType):
        SE2.check("T")


# Group operations
def test_inverse_law():
    """Test T * T.inv() is the identity."""
    T = SE2(1.0, -2.0, 0.7)
    np.testing.assert_allclose((T * T.inv()).matrix, jnp.eye(3), atol=1e-12)
    np.testing.assert_allclose((T.inv() * T).matrix, jnp.eye(3), atol=1e-12)


def test_composition_is_associative():
    """Test (a * b) * c == a * (b * c)."""
    a, b, c = SE2(1.0, 2.0, 0.3), SE2(-1.0, 0.5, 1.2), SE2(0.0, 3.0, -2.0)
    np.testing.assert_allclose(((a * b) * c).matrix, (a * (b * c)).matrix, atol=1e-12)


def test_division():
    """Test a / b == a * b.inv()."""
    a, b = SE2(1.0, 2.0, 0.3), SE2(-1.0, 0.5, 1.2)
    np.testing.assert_allclose((a / b).matrix, (a * b.inv()).matrix, atol=1e-12)
    with pytest.raises(InvalidOperandType):
        a / 2.0


def test_powers():
    """Test integer powers by repeated composition."""
    T = SE2(1.0, 2.0, 0.3)
    np.testing.assert_allclose((T ** 3).matrix, (T * T * T).matrix, atol=1e-12)
    np.testing.assert_allclose((T ** 0).matrix, jnp.eye(3))
    np.testing.assert_allclose((T ** -2).matrix, (T * T).inv().matrix, atol=1e-12)
    np.testing.assert_allclose((T ** 2.0).matrix, (T * T).matrix, atol=1e-12)

    # Powers of an array apply to each element
    arr = SE2(np.array([[0.0, 0.0, 0.1], [1.0, 0.0, 0.2]]))
    np.testing.assert_allclose((arr ** 2).theta, jnp.array([0.2, 0.4]), atol=1e-12)


@pytest.mark.parametrize("n", [1.5, True, "2", [2], float("inf")])
def test_non_integer_power(n):
    """Test non-integer exponents raise NonIntegerExponent."""
    with pytest.raises(NonIntegerExponent):
        SE2(1.0, 2.0) ** n


def test_broadcasting():
    """Test a length-1 operand pairs with every element of the other."""
    one = SE2(1.0, 0.0, 0.5)
    many = SE2(np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.1], [2.0, 2.0, 0.2]]))

    left = one * many
    right = many * one
    assert len(left) == 3
    assert len(right) == 3
    for i in range(3):
        np.testing.assert_allclose(left[i].matrix, (one * many[i]).matrix, atol=1e-12)
        np.testing.assert_allclose(right[i].matrix, (many[i] * one).matrix, atol=1e-12)

    pairwise = many * many.inv()
    np.testing.assert_allclose(pairwise.T(), jnp.broadcast_to(jnp.eye(3), (3, 3, 3)), atol=1e-12)


def test_length_mismatch():
    """Test operands of lengths 2 and 3 cannot be combined."""
    two = SE2.identity(2)
    three = SE2.identity(3)
    with pytest.raises(LengthMismatch, match="2 and 3"):
        two * three
    with pytest.raises(LengthMismatch):
        two / three
    with pytest.raises(LengthMismatch):
        two == three


def test_exp_log_roundtrip():
    """Test exp(log(T)) == T and the Twist accessors."""
    T = SE2(1.0, -2.0, 0.7)
    twist = T.log()
    assert isinstance(twist, Twist)
    assert twist.v.shape == (2,)
    np.testing.assert_allclose(twist.omega, 0.7, atol=1e-12)
    np.testing.assert_allclose(SE2.exp(twist).matrix, T.matrix, atol=1e-12)
    np.testing.assert_allclose(SE2.exp(twist.matrix()).matrix, T.matrix, atol=1e-12)
    np.testing.assert_allclose(SE2.exp(twist.vector[0]).matrix, T.matrix, atol=1e-12)


def test_exp_batch():
    """Test exp of an (N, 3) array of twists."""
    twists = jnp.array([[1.0, 0.0, 0.0], [0.0, 0.0, jnp.pi / 2]])
    T = SE2.exp(twists)
    assert len(T) == 2
    np.testing.assert_allclose(T[0].t, jnp.array([1.0, 0.0]), atol=1e-12)
    np.testing.assert_allclose(T[1].theta, jnp.pi / 2, atol=1e-12)
    with pytest.raises(UnrecognizedArgument):
        SE2.exp(jnp.ones(4))


def test_exp_three_twists():
    """Test a (3, 3) array of twist rows gives three transforms."""
    A = SE2(np.array([[1.0, 2.0, 0.3], [0.0, -1.0, -0.4], [2.0, 0.5, 1.0]]))
    back = SE2.exp(A.log().vector)
    assert len(back) == 3
    np.testing.assert_allclose(back.T(), A.T(), atol=1e-12)

    rows = SE2.exp(np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 0.5]]))
    assert len(rows) == 3
    np.testing.assert_allclose(rows[2].theta, 0.5, atol=1e-12)

    # Stacks of generators are still accepted; other stacks are rejected
    np.testing.assert_allclose(SE2.exp(se2.hat(A.log().vector)).T(), A.T(), atol=1e-12)
    with pytest.raises(UnrecognizedArgument):
        SE2.exp(np.ones((2, 3, 3)))


# Points
def test_transform_points():
    """Test composition with a point or a block of column points."""
    T = SE2(1.0, 2.0, 90.0, "deg")
    np.testing.assert_allclose(T * [1.0, 0.0], jnp.array([1.0, 3.0]), atol=1e-12)

    P = np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    expected = np.array([[1.0, 1.0, 0.0], [2.0, 3.0, 2.0]])
    np.testing.assert_allclose(T * P, expected, atol=1e-12)

    # A 3-vector is multiplied by the full homogeneous matrix
    np.testing.assert_allclose(T * [1.0, 0.0, 1.0], jnp.array([1.0, 3.0, 1.0]), atol=1e-12)
    np.testing.assert_allclose(T * [1.0, 0.0, 0.0], jnp.array([0.0, 1.0, 0.0]), atol=1e-12)


def test_transform_points_array():
    """Test an array of transforms maps a point to one result per element."""
    T = SE2(np.array([[1.0, 0.0], [0.0, 1.0], [2.0, 2.0]]))
    out = T * [1.0, 1.0]
    np.testing.assert_allclose(out, jnp.array([[2.0, 1.0], [1.0, 2.0], [3.0, 3.0]]))


def test_invalid_operands():
    """Test unsupported operands raise InvalidOperandType."""
    T = SE2(1.0, 2.0)
    with pytest.raises(InvalidOperandType):
        T * "x"
    with pytest.raises(InvalidOperandType):
        T * np.ones(5)
    with pytest.raises(InvalidOperandType):
        T * np.ones((4, 4))
    with pytest.raises(InvalidOperandType):
        "x" * T


def test_matrix_operands():
    """Test raw homogeneous matrices on either side of *."""
    T = SE2(1.0, 2.0, 0.3)
    M = np.asarray(SE2(-1.0, 0.0, 0.5).matrix)
    np.testing.assert_allclose((T * M).matrix, T.matrix @ M, atol=1e-12)
    left = M * T
    assert isinstance(left, SE2)
    np.testing.assert_allclose(left.matrix, M @ T.matrix, atol=1e-12)


# Relational operators
def test_equality():
    """Test exact equality, elementwise for arrays."""
    a = SE2(1.0, 2.0)
    assert a == SE2([1.0, 2.0])
    assert a != SE2(1.0, 2.5)
    assert not (a != SE2(1.0, 2.0))

    arr = SE2(np.array([[1.0, 2.0, 0.0], [0.0, 0.0, 0.0]]))
    np.testing.assert_array_equal(arr == a, np.array([True, False]))
    np.testing.assert_array_equal(arr != a, np.array([False, True]))
    assert (a == "a") is False


# Accessors
def test_indexing():
    """Test element access, slicing and iteration."""
    T = SE2(np.array([[float(i), 0.0, 0.0] for i in range(4)]))
    assert T[2] == SE2(2.0, 0.0, 0.0)
    assert T[-1] == SE2(3.0, 0.0, 0.0)
    assert len(T[1:3]) == 2
    assert [float(Ti.t[0]) for Ti in T] == [0.0, 1.0, 2.0, 3.0]
    with pytest.raises(IndexError):
        T[4]


def test_xyt_and_se3():
    """Test conversion to [x, y, theta] and the SE(3) embedding."""
    T = SE2(3.0, -1.0, 0.5)
    np.testing.assert_allclose(T.xyt(), jnp.array([3.0, -1.0, 0.5]), atol=1e-12)
    M = T.se3()
    assert M.shape == (4, 4)
    np.testing.assert_allclose(M[:2, :2], T.R)
    np.testing.assert_allclose(M[:2, 3], T.t)
    np.testing.assert_allclose(M[2, 2], 1.0)


def test_with_t():
    """Test replacing the translation keeps the rotation."""
    T = SE2(3.0, -1.0, 0.5)
    U = T.with_t([5.0, 6.0])
    np.testing.assert_allclose(U.t, jnp.array([5.0, 6.0]))
    np.testing.assert_allclose(U.R, T.R)
    np.testing.assert_allclose(T.t, jnp.array([3.0, -1.0]))
    assert T.simplify() is T


# Display
def test_str_and_print():
    """Test one line per element."""
    T = SE2(np.array([[1.0, 2.0, 0.0], [0.5, 0.0, jnp.pi]]))
    assert str(T) == "t = (1, 2), theta = 0 deg\nt = (0.5, 0), theta = 180 deg"
    buf = io.StringIO()
    T.print(file=buf)
    assert buf.getvalue() == str(T) + "\n"
    assert repr(T).startswith("SE2<2>(")


# JAX integration
def test_jit_compatibility():
    """Test SE2 values flow through jax.jit as pytrees."""

    @jax.jit
    def relative(a, b):
        return a.inv() * b

    a, b = SE2(1.0, 2.0, 0.3), SE2(-1.0, 0.5, 1.2)
    out = relative(a, b)
    assert isinstance(out, SE2)
    np.testing.assert_allclose(out.matrix, (a.inv() * b).matrix, atol=1e-12)


def test_vmap_over_log():
    """Test the underlying stack can be mapped with vmap."""
    T = SE2(np.array([[1.0, 2.0, 0.3], [0.0, -1.0, -0.4]]))
    twists = jax.vmap(se2.log)(T.T())
    np.testing.assert_allclose(twists, T.log().vector, atol=1e-12)


@given(xyt_strategy, xyt_strategy)
@settings(deadline=None)
def test_group_laws_property(p, q):
    """Test inverse and exp/log laws over random transforms."""
    a, b = SE2(*p), SE2(*q)
    np.testing.assert_allclose((a * b).inv().matrix, (b.inv() * a.inv()).matrix, atol=1e-9)
    np.testing.assert_allclose(SE2.exp(a.log()).matrix, a.matrix, atol=1e-9)
    np.testing.assert_allclose(((a * b) * [1.0, -1.0]), a * (b * [1.0, -1.0]), atol=1e-9)
