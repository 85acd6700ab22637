from .scene import NodeKind, SceneNode, MeshNode
from .joints import JointNode, JointType, JointLimit, MimicSpec
from .robot import RobotModel
from .materials import Material
from .viewer_config import ConfigField, ConfigChange, UpAxis, ViewerConfig
