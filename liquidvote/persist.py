'''Serialization of Liquidvote objects to JSON-ready dictionaries.

Two kinds of objects are serialized:

-   Records (tabulation results, effective votes, delegations, audit events)
    are dataclasses and serialize field by field. Choice values inside them
    serialize to their raw JSON form. These are output only.
-   Components (tabulators, voting systems, ballot validators and rank
    scorers) get a ``to_dict()`` method from the :func:`simple_serialization`
    decorator that records their class and constructor parameters, and can
    be reconstructed by :func:`from_dict`.
'''

import enum
import datetime
import importlib
import inspect
import dataclasses
from typing import Any, List, Dict


PACKAGE_PREFIX = 'liquidvote.'

CONSTRUCTOR_PARAM_KINDS = (
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The resulting method will serialize all object attributes corresponding
    to the class's constructor parameter names. Therefore, this decorator
    is only useful when the class stores all its original parameters
    unchanged (or in any other form acceptable to its constructor).

    :param class_: The class to add the method to.
    '''
    param_names = constructor_params(class_)

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': scoped_class_name(self)}
        for attr in param_names:
            out_dict[attr] = serialize_value(getattr(self, attr))
        return out_dict

    class_.to_dict = to_dict
    return class_


def constructor_params(class_: type) -> List[str]:
    '''Return the names of the named constructor parameters of a class.

    Classes inheriting the constructor of `object` have none.
    '''
    if class_.__init__ is object.__init__:
        return []
    params = inspect.signature(class_.__init__).parameters.values()
    return [
        param.name for param in params
        if param.kind in CONSTRUCTOR_PARAM_KINDS and param.name != 'self'
    ]


def serialize_value(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif hasattr(value, 'to_raw'):
        # choice values
        return value.to_raw()
    elif isinstance(value, enum.Enum):
        return value.value
    elif value is None or isinstance(value, (str, int, float, bool)):
        return value
    elif isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: serialize_value(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    elif isinstance(value, dict):
        if not all(isinstance(key, str) for key in value.keys()):
            raise ValueError(f'cannot serialize {value!r}: non-string keys')
        return {key: serialize_value(val) for key, val in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(val) for val in value]
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def deserialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        if 'class' in value:
            return deserialize_component(value)
        else:
            return {key: deserialize_value(val) for key, val in value.items()}
    elif isinstance(value, list):
        return [deserialize_value(val) for val in value]
    else:
        return value


def deserialize_component(clsdef: Dict[str, Any]) -> Any:
    cls = get_component_class(clsdef['class'])
    params = {
        key: deserialize_value(val)
        for key, val in clsdef.items() if key != 'class'
    }
    unknown = set(params) - set(constructor_params(cls))
    if unknown:
        raise ValueError(f'invalid parameters for {clsdef["class"]}: '
                         + ', '.join(sorted(unknown)))
    return cls(**params)


def get_component_class(identifier: Any) -> type:
    '''Find a serializable Liquidvote class by its scoped name.

    :raises ValueError: If the name does not denote a class within the
        Liquidvote package that provides ``to_dict()``.
    '''
    if not is_scoped_identifier(identifier):
        raise ValueError(f'invalid liquidvote class def: {identifier!r}')
    if not identifier.startswith(PACKAGE_PREFIX):
        raise ValueError(f'not a liquidvote class: {identifier}')
    module_name, name = identifier.rsplit('.', 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as err:
        raise ValueError(f'unknown liquidvote module: {module_name}') from err
    cls = getattr(module, name, None)
    if not isinstance(cls, type) or not hasattr(cls, 'to_dict'):
        raise ValueError(f'not a serializable liquidvote class: {identifier}')
    return cls


def from_dict(value: Dict[str, Any]) -> Any:
    """Reconstruct a tabulator, system, validator or scorer from a dictionary.

    :param value: A dictionary created by :func:`to_dict` from a component.
    :raises ValueError: If the dictionary does not describe a component.
    """
    if not isinstance(value, dict):
        raise ValueError('invalid liquidvote object def: dict expected,'
                         f' got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid liquidvote object def: must have a class key')
    else:
        return deserialize_component(value)


def to_dict(obj: Any) -> Any:
    """Serialize a Liquidvote object to a JSON-ready value.

    :param obj: A tabulation result, effective vote, delegation, tabulator
        or similar, or a dictionary or list of them. Components provide a
        `to_dict()` method (courtesy of the simple_serialization decorator),
        records are serialized field by field.
    """
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and not value.startswith('.')
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_class_name(value: Any) -> str:
    cls = value.__class__
    return '.'.join((cls.__module__, cls.__name__))
