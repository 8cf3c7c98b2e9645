# graphics/shaders.py

# Jewellery material: textured or flat gold, with a metal highlight
MODEL_VS = """
#version 330 core
layout(location = 0) in vec3 in_position;
layout(location = 1) in vec3 in_normal;
layout(location = 2) in vec2 in_texcoord;
uniform mat4 u_mvp;
uniform mat3 u_normal_matrix;
out vec3 v_normal;
out vec2 v_texcoord;
void main() {
    v_normal = u_normal_matrix * in_normal;
    v_texcoord = in_texcoord;
    gl_Position = u_mvp * vec4(in_position, 1.0);
}
"""

MODEL_FS = """
#version 330 core
in vec3 v_normal;
in vec2 v_texcoord;
out vec4 out_color;
uniform sampler2D u_albedo;
uniform bool u_textured;
uniform vec4 u_metal_color;
uniform vec3 u_light_dir;
uniform float u_exposure;

void main() {
    vec3 n = normalize(v_normal);
    vec3 l = normalize(u_light_dir);
    vec3 h = normalize(l + vec3(0.0, 0.0, 1.0));
    vec4 albedo = u_textured ? texture(u_albedo, v_texcoord) : u_metal_color;

    float diffuse = 0.35 + 0.65 * max(dot(n, l), 0.0);
    float highlight = pow(max(dot(n, h), 0.0), 48.0);
    vec3 color = albedo.rgb * diffuse + vec3(highlight) * 0.6;
    out_color = vec4(color * u_exposure, albedo.a);
}
"""

# Soft contact shadow on the floor under the model
SHADOW_VS = """
#version 330 core
layout(location = 0) in vec2 in_corner;
uniform mat4 u_mvp;
out vec2 v_corner;
void main() {
    v_corner = in_corner;
    gl_Position = u_mvp * vec4(in_corner.x, 0.0, in_corner.y, 1.0);
}
"""

SHADOW_FS = """
#version 330 core
in vec2 v_corner;
out vec4 out_color;
uniform float u_strength;
void main() {
    float falloff = 1.0 - smoothstep(0.2, 1.0, length(v_corner));
    out_color = vec4(0.0, 0.0, 0.0, 0.55 * u_strength * falloff);
}
"""

# Poster image, drawn full screen while the model loads
POSTER_VS = """
#version 330 core
layout(location = 0) in vec2 in_corner;
out vec2 v_texcoord;
void main() {
    v_texcoord = vec2(in_corner.x * 0.5 + 0.5, 0.5 - in_corner.y * 0.5);
    gl_Position = vec4(in_corner, 0.0, 1.0);
}
"""

POSTER_FS = """
#version 330 core
in vec2 v_texcoord;
out vec4 out_color;
uniform sampler2D u_poster;
void main() { out_color = texture(u_poster, v_texcoord); }
"""

PROGRAMS = {
    "model": (MODEL_VS, MODEL_FS),
    "shadow": (SHADOW_VS, SHADOW_FS),
    "poster": (POSTER_VS, POSTER_FS),
}
