from enum import Enum, auto

class Attribute(Enum):
    """ 
    Base enum for the kinds and features of resources.
    An event lists the Attributes it requires, and a resource lists the Attributes it provides.
    For example, an event can require "LAB", and it can then only be placed in resources that have "LAB".
    """
    
    # Room kinds
    LECTURE = auto()
    LAB = auto()
    SEMINAR = auto()
    ONLINE = auto()
    
    # Room facilities
    PROJECTOR = auto()
    ACCESSIBLE = auto()
    
    # Period kinds
    SUMMER = auto()
    EVENING = auto()
    
    def __str__(self):
        return self.name.capitalize()
    
    @classmethod
    def from_string(cls, attribute_string: str) -> 'Attribute':
        try:
            return cls[attribute_string.upper()]
        except KeyError:
            raise ValueError(f"No attribute found for: {attribute_string}")
        
    @classmethod
    def to_string(cls, attribute) -> str:
        if not isinstance(attribute, cls):
            raise ValueError(f"Expected an Attribute, got {type(attribute)}")
        return attribute.name
